"""
Wishlist service: the operations exposed to routes and jobs.

Every mutation runs in one database transaction; callers either see the
whole effect (entry, contact, tentative match) or none of it.
"""

from datetime import datetime, timedelta

from app.db.pool import get_db_transaction
from app.features.wishlist.domain import (
    IcebreakerIntent,
    IdentifierType,
    InvalidIdentifier,
    MatchView,
    ProcessingSummary,
    ProfileNotFound,
    SlotView,
    UserIdentity,
    WishlistEntry,
)
from app.features.wishlist.repository import IdentityRepository
from app.infrastructure.observability.logging import get_logger

from .contact_registry import ContactRegistry, coerce_identifier_type, contact_registry
from .match_engine import MatchEngine, match_engine
from .scheduler import MatchScheduler, match_scheduler
from .slot_ledger import SlotLedger, slot_ledger

logger = get_logger(__name__)


def _is_own_identifier(owner: UserIdentity, identifier_type: IdentifierType, identifier: str) -> bool:
    if identifier_type is IdentifierType.PHONE:
        return owner.phone == identifier
    return owner.instagram_handle == identifier


class WishlistService:
    def __init__(
        self,
        registry: ContactRegistry | None = None,
        ledger: SlotLedger | None = None,
        engine: MatchEngine | None = None,
        scheduler: MatchScheduler | None = None,
        identities=IdentityRepository,
        transaction=get_db_transaction,
    ):
        self._registry = registry or contact_registry
        self._ledger = ledger or slot_ledger
        self._engine = engine or match_engine
        self._scheduler = scheduler or match_scheduler
        self._identities = identities
        self._transaction = transaction

    async def add_to_slot(
        self,
        owner_id: str,
        slot_number: int,
        contact_name: str,
        identifier_type: IdentifierType | str,
        raw_identifier: str,
        now: datetime,
    ) -> WishlistEntry:
        """
        Put a contact on the owner's wishlist.

        Raises:
            InvalidIdentifier, InvalidContactName, InvalidSlot: bad input
            SlotUnavailable, DuplicateContact, AlreadyMatched: state conflict
            ProfileNotFound: owner has no registered profile
        """
        identifier_type = coerce_identifier_type(identifier_type)
        identifier = self._registry.normalize(identifier_type, raw_identifier)
        self._ledger.check_slot(owner_id, slot_number)

        async with await self._transaction() as conn:
            owner = await self._identities.get_user(owner_id, connection=conn)
            if owner is None:
                raise ProfileNotFound("User profile not found", user_id=owner_id)
            if _is_own_identifier(owner, identifier_type, identifier):
                raise InvalidIdentifier("You cannot add yourself to your wishlist", user_id=owner_id)

            contact = await self._registry.resolve_or_create(
                owner_id, contact_name, identifier_type, raw_identifier, connection=conn
            )
            entry = await self._ledger.fill(owner_id, slot_number, contact, now, connection=conn)

        return entry

    async def remove_from_slot(self, owner_id: str, slot_number: int, now: datetime) -> None:
        await self._ledger.vacate(owner_id, slot_number, now)

    async def list_wishlist(self, owner_id: str, now: datetime) -> list[SlotView]:
        return await self._ledger.list_slots(owner_id, now)

    async def list_matches(self, owner_id: str) -> list[MatchView]:
        return await self._engine.list_matches(owner_id)

    async def is_revealed(self, owner_id: str, contact_id: str) -> bool:
        return await self._engine.is_revealed(owner_id, contact_id)

    async def send_icebreaker(self, owner_id: str, match_id: str, message: str) -> IcebreakerIntent:
        return await self._engine.record_icebreaker(owner_id, match_id, message)

    async def run_scheduled_processing(self, now: datetime) -> ProcessingSummary:
        """Validate and reveal pending matches, then book the next run."""
        summary = await self._engine.process_all(now)
        state = await self._scheduler.record_run(now)
        logger.info(
            "Scheduled match processing completed",
            next_processing_at=state.next_processing_at.isoformat(),
            **summary.as_dict(),
        )
        return summary

    async def next_processing_at(self, now: datetime) -> datetime:
        return await self._scheduler.next_processing_at(now)

    async def time_until_next_processing(self, now: datetime) -> timedelta:
        return await self._scheduler.time_remaining(now)


wishlist_service = WishlistService()
