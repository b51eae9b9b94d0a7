"""
User service for profile operations.
Registers verified identities and assembles the profile returned by /me.
"""

from datetime import datetime

from app.config import settings
from app.db.pool import get_db_transaction
from app.features.wishlist.domain import ConflictError, InvalidIdentifier, UserIdentity
from app.features.wishlist.domain.normalization import normalize_phone
from app.features.wishlist.repository import IdentityRepository
from app.features.wishlist.services import slot_ledger
from app.infrastructure.observability.logging import get_logger
from app.models.domain.user_domain import UserProfile
from app.services import redis_store

logger = get_logger(__name__)


class PhoneAlreadyRegistered(ConflictError):
    pass


def handle_prompt_snooze_key(user_id: str, session_id: str | None) -> str:
    return f"handle_prompt_snooze:{user_id}:{session_id or 'default'}"


async def is_handle_prompt_snoozed(user_id: str, session_id: str | None = None) -> bool:
    """True if the user dismissed the handle prompt for this session."""
    return await redis_store.get(handle_prompt_snooze_key(user_id, session_id)) is not None


def _to_profile(identity: UserIdentity, snoozed: bool = False) -> UserProfile:
    return UserProfile(
        user_id=identity.user_id,
        phone=identity.phone,
        instagram_handle=identity.instagram_handle,
        created_at=identity.created_at,
        handle_prompt_skipped=identity.handle_prompt_skipped,
        handle_prompt_snoozed=snoozed,
    )


async def get_user_profile(user_id: str, session_id: str | None = None) -> UserProfile | None:
    """
    Fetch the user's profile.

    Args:
        user_id: Supabase auth user id
        session_id: auth session id, scopes the temporary handle prompt skip

    Returns:
        UserProfile, None if the user has not registered yet
    """
    identity = await IdentityRepository.get_user(user_id)
    if identity is None:
        logger.warning("User profile not found", user_id=user_id)
        return None

    snoozed = False
    if identity.instagram_handle is None and not identity.handle_prompt_skipped:
        snoozed = await is_handle_prompt_snoozed(user_id, session_id)

    return _to_profile(identity, snoozed)


async def register_user(
    user_id: str, raw_phone: str | None, now: datetime
) -> tuple[UserProfile, bool]:
    """
    Create the user from a verified phone number and open their wishlist.

    Idempotent: a second call returns the stored profile with created=False.

    Raises:
        InvalidIdentifier: the token carries no usable phone number
        PhoneAlreadyRegistered: another account already owns the phone
    """
    if not raw_phone:
        raise InvalidIdentifier("Verified phone number missing from token", user_id=user_id)
    phone = normalize_phone(raw_phone, settings.PHONE_COUNTRY_CODE)

    async with await get_db_transaction() as conn:
        holder = await IdentityRepository.find_by_phone(phone, connection=conn)
        if holder is not None and holder.user_id != user_id:
            raise PhoneAlreadyRegistered(
                "Phone number is registered to another account", user_id=user_id
            )

        identity, created = await IdentityRepository.create_user(
            user_id, phone, now, connection=conn
        )
        if created:
            await slot_ledger.open_wishlist(user_id, now, connection=conn)

    logger.info("User registration handled", user_id=user_id, created=created)
    return _to_profile(identity), created
