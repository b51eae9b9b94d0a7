# app/models/api/user_request.py
from pydantic import BaseModel, Field


class LinkHandleRequest(BaseModel):
    """Request body for linking a social handle to the account."""

    handle: str = Field(..., min_length=1, max_length=64, description="Handle, with or without @")


class SkipHandlePromptRequest(BaseModel):
    """Request body for dismissing the handle prompt."""

    permanent: bool = Field(
        False, description="True: never ask again. False: ask again next session."
    )
