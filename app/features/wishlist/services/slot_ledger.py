"""
Slot ledger: the ten ordered slots of each wishlist.

Fill and vacate both take a row lock on the owner for the length of their
transaction, so edits to one wishlist apply one at a time.
"""

from datetime import datetime

import psycopg

from app.config import settings
from app.db.pool import get_db_transaction
from app.features.wishlist.domain import (
    AlreadyMatched,
    Contact,
    DuplicateContact,
    InvalidSlot,
    LockReason,
    ProfileNotFound,
    SlotEmpty,
    SlotUnavailable,
    SlotView,
    WishlistEntry,
)
from app.features.wishlist.domain import slots as slot_rules
from app.features.wishlist.repository import (
    ContactRepository,
    IdentityRepository,
    MatchRepository,
    SlotRepository,
)
from app.infrastructure.observability.logging import get_logger

from .contact_registry import ContactRegistry, contact_registry
from .match_engine import MatchEngine, match_engine

logger = get_logger(__name__)


class SlotLedger:
    def __init__(
        self,
        slots=SlotRepository,
        identities=IdentityRepository,
        matches=MatchRepository,
        contacts=ContactRepository,
        registry: ContactRegistry | None = None,
        engine: MatchEngine | None = None,
        transaction=get_db_transaction,
        slot_count: int | None = None,
        cooldown_months: int | None = None,
        stagger_days: int | None = None,
    ):
        self._slots = slots
        self._identities = identities
        self._matches = matches
        self._contacts = contacts
        self._registry = registry or contact_registry
        self._engine = engine or match_engine
        self._transaction = transaction
        self.slot_count = slot_count or settings.WISHLIST_SLOT_COUNT
        self.cooldown_months = cooldown_months or settings.SLOT_COOLDOWN_MONTHS
        self.stagger_days = (
            settings.SLOT_INITIAL_STAGGER_DAYS if stagger_days is None else stagger_days
        )

    def check_slot(self, owner_id: str, slot_number: int) -> None:
        if not slot_rules.is_valid_slot(slot_number, self.slot_count):
            raise InvalidSlot(
                f"Slot must be between 1 and {self.slot_count}, got {slot_number}",
                user_id=owner_id,
            )

    async def open_wishlist(
        self,
        owner_id: str,
        created_at: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> int:
        """Seed initial availability for a new account. Existing rows are kept."""
        rows = slot_rules.initial_availability(created_at, self.slot_count, self.stagger_days)
        return await self._slots.seed_availability(owner_id, rows, connection=connection)

    async def can_fill(
        self,
        owner_id: str,
        slot_number: int,
        now: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> bool:
        self.check_slot(owner_id, slot_number)
        entry = await self._slots.get_entry(owner_id, slot_number, connection=connection)
        if entry is not None:
            return False
        held = await self._slots.get_availability(owner_id, slot_number, connection=connection)
        return slot_rules.can_fill(entry, held, now)

    async def fill(
        self,
        owner_id: str,
        slot_number: int,
        contact: Contact,
        now: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> WishlistEntry:
        """
        Place a contact in a slot and check for a reciprocal placement.

        Joins the caller's transaction when one is given.

        Raises:
            InvalidSlot, SlotUnavailable, DuplicateContact, AlreadyMatched
        """
        if connection is None:
            async with await self._transaction() as conn:
                return await self._fill(owner_id, slot_number, contact, now, conn)
        return await self._fill(owner_id, slot_number, contact, now, connection)

    async def _fill(
        self,
        owner_id: str,
        slot_number: int,
        contact: Contact,
        now: datetime,
        conn: psycopg.AsyncConnection,
    ) -> WishlistEntry:
        self.check_slot(owner_id, slot_number)
        if await self._identities.lock_user(owner_id, connection=conn) is None:
            raise ProfileNotFound("User profile not found", user_id=owner_id)

        if not await self.can_fill(owner_id, slot_number, now, connection=conn):
            raise SlotUnavailable(f"Slot {slot_number} is not available", user_id=owner_id)

        placed = await self._slots.get_entry_for_contact(owner_id, contact.id, connection=conn)
        if placed is not None:
            raise DuplicateContact(
                f"Contact is already in slot {placed.slot_number}", user_id=owner_id
            )

        other = await self._registry.resolve_user(contact, connection=conn)
        if (
            other is not None
            and other.user_id != owner_id
            and await self._engine.has_match_with(owner_id, other.user_id, connection=conn)
        ):
            raise AlreadyMatched("You already have a match with this person", user_id=owner_id)

        entry = await self._slots.insert_entry(
            owner_id, slot_number, contact.id, now, connection=conn
        )
        if entry is None:
            raise SlotUnavailable(f"Slot {slot_number} is not available", user_id=owner_id)

        logger.info(
            "Slot filled",
            user_id=owner_id,
            slot_number=slot_number,
            contact_id=contact.id,
        )

        await self._engine.check_reciprocity(owner_id, contact, now, connection=conn)
        return entry

    async def vacate(self, owner_id: str, slot_number: int, now: datetime) -> WishlistEntry:
        """
        Empty a slot and start its cooldown.

        Pending matches that relied on the removed placement are dropped;
        revealed matches are kept.

        Raises:
            InvalidSlot, SlotEmpty
        """
        self.check_slot(owner_id, slot_number)

        async with await self._transaction() as conn:
            if await self._identities.lock_user(owner_id, connection=conn) is None:
                raise ProfileNotFound("User profile not found", user_id=owner_id)

            entry = await self._slots.delete_entry(owner_id, slot_number, connection=conn)
            if entry is None:
                raise SlotEmpty(f"Slot {slot_number} is empty", user_id=owner_id)

            dropped = await self._matches.delete_unrevealed_for_contact(
                owner_id, entry.contact_id, connection=conn
            )
            unlocks_at = slot_rules.add_months(now, self.cooldown_months)
            await self._slots.set_availability(
                owner_id, slot_number, unlocks_at, LockReason.DELETION, connection=conn
            )

        logger.info(
            "Slot vacated",
            user_id=owner_id,
            slot_number=slot_number,
            contact_id=entry.contact_id,
            pending_matches_dropped=dropped,
            unlocks_at=unlocks_at.isoformat(),
        )
        return entry

    async def list_slots(self, owner_id: str, now: datetime) -> list[SlotView]:
        entries = await self._slots.list_entries(owner_id)
        availability = await self._slots.list_availability(owner_id)
        contacts = await self._contacts.get_many(entry.contact_id for entry in entries)
        matched = await self._engine.matched_contact_ids(owner_id)

        return slot_rules.build_slot_views(
            self.slot_count,
            {entry.slot_number: entry for entry in entries},
            availability,
            contacts,
            matched,
            now,
        )


slot_ledger = SlotLedger()
