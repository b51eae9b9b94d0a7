from datetime import datetime

from pydantic import BaseModel, computed_field


class UserProfile(BaseModel):
    """Registered user as returned to the owner of the account."""

    user_id: str
    phone: str
    instagram_handle: str | None = None
    created_at: datetime

    # Handle linking prompt state
    handle_prompt_skipped: bool = False  # permanent, stored on the user row
    handle_prompt_snoozed: bool = False  # this session only, stored in Redis

    @computed_field
    @property
    def should_prompt_handle(self) -> bool:
        return (
            self.instagram_handle is None
            and not self.handle_prompt_skipped
            and not self.handle_prompt_snoozed
        )
