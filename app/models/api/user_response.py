# app/models/api/user_response.py
from pydantic import BaseModel, Field

from app.models.domain.user_domain import UserProfile


class AuthMeta(BaseModel):
    """Auth metadata extracted from JWT claims."""

    user_id: str
    phone: str | None = None
    session_id: str | None = None
    role: str | None = "authenticated"
    aud: str | None = None
    iat: int | None = None
    exp: int | None = None

    @classmethod
    def from_claims(cls, claims: dict) -> "AuthMeta":
        return cls(
            user_id=claims.get("sub"),
            phone=claims.get("phone"),
            session_id=claims.get("session_id"),
            role=claims.get("role", "authenticated"),
            aud=claims.get("aud"),
            iat=claims.get("iat"),
            exp=claims.get("exp"),
        )


class UserProfileResponse(BaseModel):
    """API response for /me endpoint."""

    profile: UserProfile = Field(..., description="Complete user profile data")
    auth: AuthMeta = Field(..., description="JWT authentication metadata")


class RegistrationResponse(BaseModel):
    """Response for POST /onboarding/profile"""

    created: bool = Field(..., description="False when the profile already existed")
    profile: UserProfile


class HandlePromptResponse(BaseModel):
    """Response for handle linking and skipping."""

    success: bool
    profile: UserProfile
    message: str
