"""
onboarding.py
-------------
Purpose:
    API endpoints for account setup after phone verification.

Architecture:
    - API layer: Handles HTTP concerns, validation, auth
    - Service layer: Returns domain models (UserProfile)
    - API layer: Converts domain models → HTTP response models

Usage:
    1. POST /onboarding/profile     - Register the verified phone, open the wishlist
    2. PUT  /onboarding/handle      - Link a social handle
    3. POST /onboarding/handle/skip - Dismiss the handle prompt (session or forever)
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.verify import auth_dependency
from app.features.wishlist.api.errors import to_http_error
from app.features.wishlist.domain import WishlistError
from app.infrastructure.observability.logging import get_logger
from app.models.api.user_request import LinkHandleRequest, SkipHandlePromptRequest
from app.models.api.user_response import HandlePromptResponse, RegistrationResponse
from app.services.onboarding_service import (
    OnboardingServiceError,
    link_handle,
    skip_handle_prompt,
)
from app.services.user_service import register_user

router = APIRouter(prefix="/onboarding", tags=["onboarding"])
logger = get_logger(__name__)


def _require_user_id(claims: dict) -> str:
    user_id = claims.get("sub")
    if not user_id:
        logger.error("No user ID in JWT claims")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing user ID"
        )
    return user_id


@router.post("/profile", response_model=RegistrationResponse)
async def register_profile(claims: dict = Depends(auth_dependency)):
    """
    Create the caller's profile from the verified phone in their token.

    Safe to call after every sign-in.

    Raises:
        409: phone already belongs to another account
        422: token carries no usable phone number
    """
    user_id = _require_user_id(claims)

    try:
        profile, created = await register_user(user_id, claims.get("phone"), datetime.now(UTC))
    except WishlistError as e:
        logger.warning("Registration rejected", user_id=user_id, code=e.code)
        raise to_http_error(e) from e

    return RegistrationResponse(created=created, profile=profile)


@router.put("/handle", response_model=HandlePromptResponse)
async def update_handle(request: LinkHandleRequest, claims: dict = Depends(auth_dependency)):
    """
    Link a social handle to the caller's account.

    Raises:
        404: profile not registered
        409: handle linked to another account
        422: handle empty after normalization
    """
    user_id = _require_user_id(claims)

    try:
        profile = await link_handle(user_id, request.handle, claims.get("session_id"))
    except WishlistError as e:
        raise to_http_error(e) from e

    return HandlePromptResponse(
        success=True,
        profile=profile,
        message=f"Linked @{profile.instagram_handle}.",
    )


@router.post("/handle/skip", response_model=HandlePromptResponse)
async def skip_handle(request: SkipHandlePromptRequest, claims: dict = Depends(auth_dependency)):
    user_id = _require_user_id(claims)

    try:
        profile = await skip_handle_prompt(user_id, request.permanent, claims.get("session_id"))
    except WishlistError as e:
        raise to_http_error(e) from e
    except OnboardingServiceError as e:
        logger.error("Handle prompt skip failed", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        ) from e

    message = "We won't ask again." if request.permanent else "We'll ask again next time."
    return HandlePromptResponse(success=True, profile=profile, message=message)
