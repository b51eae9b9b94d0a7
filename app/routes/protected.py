"""
protected.py
------------
Purpose:
    Protected endpoints that require a valid Supabase Auth JWT.

    - `/me` returns the caller's profile, including whether the app should
      prompt them to link a social handle.

Usage:
    Call `/me` with:
        Authorization: Bearer <access_token>
    where <access_token> comes from Supabase phone OTP sign-in.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.verify import auth_dependency
from app.infrastructure.observability.logging import get_logger
from app.models.api.user_response import AuthMeta, UserProfileResponse
from app.services.user_service import get_user_profile

router = APIRouter()
logger = get_logger(__name__)


@router.get("/me", response_model=UserProfileResponse)
async def me(claims: dict = Depends(auth_dependency)):
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    profile = await get_user_profile(user_id, claims.get("session_id"))
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")

    return UserProfileResponse(profile=profile, auth=AuthMeta.from_claims(claims))
