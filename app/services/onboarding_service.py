"""
Onboarding service: linking a social handle after sign-up.

Users are asked once per session to link their handle. They can dismiss the
prompt for the current session (Redis key with TTL) or for good (flag on the
user row).
"""

from app.config import settings
from app.db.pool import get_db_transaction
from app.features.wishlist.domain import HandleAlreadyLinked, ProfileNotFound
from app.features.wishlist.domain.normalization import normalize_handle
from app.features.wishlist.repository import IdentityRepository
from app.infrastructure.observability.logging import get_logger
from app.models.domain.user_domain import UserProfile
from app.services import redis_store
from app.services.user_service import get_user_profile, handle_prompt_snooze_key

logger = get_logger(__name__)


class OnboardingServiceError(Exception):
    """Custom exception for onboarding service errors."""

    def __init__(self, message: str, user_id: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.user_id = user_id
        self.recoverable = recoverable


async def link_handle(
    user_id: str, raw_handle: str, session_id: str | None = None
) -> UserProfile:
    """
    Attach a normalized handle to the user.

    Raises:
        InvalidIdentifier: handle is blank after normalization
        HandleAlreadyLinked: another account owns the handle
        ProfileNotFound: user has not registered
    """
    handle = normalize_handle(raw_handle)

    async with await get_db_transaction() as conn:
        if await IdentityRepository.lock_user(user_id, connection=conn) is None:
            raise ProfileNotFound("User profile not found", user_id=user_id)

        holder = await IdentityRepository.find_by_handle(handle, connection=conn)
        if holder is not None and holder.user_id != user_id:
            raise HandleAlreadyLinked("Handle is linked to another account", user_id=user_id)

        await IdentityRepository.set_handle(user_id, handle, connection=conn)

    logger.info("Handle linked", user_id=user_id)
    return await get_user_profile(user_id, session_id)


async def skip_handle_prompt(
    user_id: str, permanent: bool, session_id: str | None = None
) -> UserProfile:
    """
    Dismiss the handle prompt.

    Args:
        permanent: never ask again when True, otherwise only for this session

    Raises:
        ProfileNotFound: user has not registered
        OnboardingServiceError: the session skip could not be stored
    """
    if permanent:
        updated = await IdentityRepository.set_handle_prompt_skipped(user_id, True)
        if not updated:
            raise ProfileNotFound("User profile not found", user_id=user_id)
    else:
        stored = await redis_store.set_with_ttl(
            handle_prompt_snooze_key(user_id, session_id),
            "1",
            settings.HANDLE_SKIP_SESSION_TTL_S,
        )
        if not stored:
            raise OnboardingServiceError(
                "Could not store handle prompt skip", user_id=user_id, recoverable=True
            )

    logger.info("Handle prompt skipped", user_id=user_id, permanent=permanent)

    profile = await get_user_profile(user_id, session_id)
    if profile is None:
        raise ProfileNotFound("User profile not found", user_id=user_id)
    return profile
