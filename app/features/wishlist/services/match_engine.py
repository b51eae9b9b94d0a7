"""
Match engine: reciprocity detection, scheduled validation and reveal.

A match is recorded unrevealed the moment two registered users have placed
each other on their wishlists. At each scheduled run every pending match is
re-validated against the current wishlists: still-reciprocal matches are
revealed for good, the rest are deleted.
"""

from datetime import datetime

import psycopg

from app.config import settings
from app.db.helpers import DatabaseError
from app.db.pool import get_db_transaction
from app.features.wishlist.domain import (
    Contact,
    IcebreakerIntent,
    InvalidMessage,
    Match,
    MatchNotFound,
    MatchView,
    ProcessingError,
    ProcessingSummary,
    ProfileNotFound,
)
from app.features.wishlist.repository import (
    ContactRepository,
    IdentityRepository,
    MatchRepository,
    SlotRepository,
)
from app.infrastructure.observability.logging import get_logger

from .contact_registry import ContactRegistry

logger = get_logger(__name__)

ICEBREAKER_TEMPLATES = (
    "Hey! 👋 Looks like we both added each other to our wishlists!",
    "What a nice surprise! 😊 How have you been?",
    "Well this is exciting! 🎉 Great to connect!",
    "Hey there! Funny how we both thought of each other ✨",
)

_REVEALED = "revealed"
_INVALIDATED = "invalidated"
_SKIPPED = "skipped"
_FAILED = "failed"


class MatchEngine:
    def __init__(
        self,
        matches=MatchRepository,
        slots=SlotRepository,
        contacts=ContactRepository,
        identities=IdentityRepository,
        registry: ContactRegistry | None = None,
        transaction=get_db_transaction,
    ):
        self._matches = matches
        self._slots = slots
        self._contacts = contacts
        self._identities = identities
        self._registry = registry or ContactRegistry(contacts=contacts, identities=identities)
        self._transaction = transaction

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    async def has_match_with(
        self,
        owner_id: str,
        other_user_id: str,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> bool:
        """True if the pair shares a match, revealed or not."""
        existing = await self._matches.find_for_pair(owner_id, other_user_id, connection=connection)
        return existing is not None

    async def check_reciprocity(
        self,
        owner_id: str,
        new_contact: Contact,
        now: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Match | None:
        """
        Record a pending match if the contact's user already wishlists the owner.

        Safe to call repeatedly: an existing match for the pair is left alone
        and nothing new is created.

        Returns:
            The newly created match, or None when nothing was recorded
        """
        other = await self._registry.resolve_user(new_contact, connection=connection)
        if other is None or other.user_id == owner_id:
            return None

        owner = await self._identities.get_user(owner_id, connection=connection)
        if owner is None:
            raise ProfileNotFound("User profile not found", user_id=owner_id)

        # The owner's entry is already written; reads below must follow the lock.
        await self._matches.lock_pair(owner_id, other.user_id, connection=connection)

        their_contacts = await self._contacts.find_representing(
            other.user_id, owner.phone, owner.instagram_handle, connection=connection
        )
        reciprocal = None
        for candidate in their_contacts:
            if await self._slots.entry_exists(other.user_id, candidate.id, connection=connection):
                reciprocal = candidate
                break

        if reciprocal is None:
            return None

        if await self.has_match_with(owner_id, other.user_id, connection=connection):
            logger.debug("Match already recorded for pair", user_id=owner_id, other_user_id=other.user_id)
            return None

        match = await self._matches.create(
            owner_id, new_contact.id, other.user_id, reciprocal.id, now, connection=connection
        )
        if match is None:
            return None

        logger.info(
            "Tentative match recorded",
            match_id=match.id,
            user_id=owner_id,
            other_user_id=other.user_id,
        )
        return match

    # ------------------------------------------------------------------
    # Scheduled processing
    # ------------------------------------------------------------------

    async def process_all(self, now: datetime) -> ProcessingSummary:
        """
        Validate every pending match and reveal or delete it.

        Each match is handled in its own short transaction. A failure on one
        match counts against that match only.

        Raises:
            ProcessingError: pending matches could not be loaded at all
        """
        try:
            pending = await self._matches.list_unrevealed()
        except DatabaseError as e:
            logger.error("Failed to load pending matches", error=str(e))
            raise ProcessingError(f"Could not load pending matches: {e}") from e

        logger.info("Processing pending matches", pending_count=len(pending))

        summary = ProcessingSummary()
        for match in pending:
            outcome = await self._process_one(match, now)
            if outcome == _REVEALED:
                summary.revealed_count += 1
            elif outcome == _INVALIDATED:
                summary.invalidated_count += 1
            elif outcome == _FAILED:
                summary.failed_count += 1
            else:
                summary.skipped_count += 1

        logger.info("Match processing finished", **summary.as_dict())
        return summary

    async def _process_one(self, match: Match, now: datetime) -> str:
        try:
            async with await self._transaction() as conn:
                locked = await self._matches.lock_unrevealed(match.id, connection=conn)
                if locked is None:
                    return _SKIPPED

                if await self._still_reciprocal(locked, conn):
                    revealed = await self._matches.mark_revealed(locked.id, now, connection=conn)
                    if revealed:
                        logger.info(
                            "Match revealed",
                            match_id=locked.id,
                            user1_id=locked.user1_id,
                            user2_id=locked.user2_id,
                        )
                    return _REVEALED if revealed else _SKIPPED

                deleted = await self._matches.delete_unrevealed(locked.id, connection=conn)
                if deleted:
                    logger.info("Match invalidated", match_id=locked.id, reason="entry_removed")
                return _INVALIDATED if deleted else _SKIPPED

        except (DatabaseError, psycopg.Error) as e:
            logger.warning("Match validation failed, invalidating", match_id=match.id, error=str(e))
            return await self._invalidate_after_failure(match)

    async def _still_reciprocal(self, match: Match, conn) -> bool:
        first = await self._slots.entry_exists(match.user1_id, match.contact1_id, connection=conn)
        if not first:
            return False
        return await self._slots.entry_exists(match.user2_id, match.contact2_id, connection=conn)

    async def _invalidate_after_failure(self, match: Match) -> str:
        try:
            deleted = await self._matches.delete_unrevealed(match.id)
        except DatabaseError as e:
            logger.error("Could not invalidate match", match_id=match.id, error=str(e))
            return _FAILED
        return _INVALIDATED if deleted else _SKIPPED

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def is_revealed(self, owner_id: str, contact_id: str) -> bool:
        return await self._matches.is_revealed_for_contact(owner_id, contact_id)

    async def matched_contact_ids(
        self, owner_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> set[str]:
        """Owner's own contact ids that stand for a revealed match."""
        revealed = await self._matches.list_revealed_for_user(owner_id, connection=connection)
        return {match.side_of(owner_id)[1] for match in revealed}

    async def list_matches(self, owner_id: str) -> list[MatchView]:
        """Revealed matches, each shown as the owner's own contact for the other person."""
        revealed = await self._matches.list_revealed_for_user(owner_id)
        contacts = await self._contacts.get_many(match.side_of(owner_id)[1] for match in revealed)

        views = []
        for match in revealed:
            contact = contacts.get(match.side_of(owner_id)[1])
            if contact is None:
                continue
            views.append(MatchView(match_id=match.id, contact=contact, revealed_at=match.revealed_at))
        return views

    async def record_icebreaker(
        self, owner_id: str, match_id: str, message: str
    ) -> IcebreakerIntent:
        """Store the intent to open a conversation with a revealed match. Nothing is sent."""
        text = (message or "").strip()
        if not text:
            raise InvalidMessage("Message must not be empty", user_id=owner_id)
        if len(text) > settings.ICEBREAKER_MAX_LENGTH:
            raise InvalidMessage(
                f"Message must be at most {settings.ICEBREAKER_MAX_LENGTH} characters",
                user_id=owner_id,
            )

        match = await self._matches.get(match_id)
        if match is None or not match.is_revealed or not match.involves(owner_id):
            raise MatchNotFound("Match not found", user_id=owner_id)

        return await self._matches.record_icebreaker(match_id, owner_id, text)


match_engine = MatchEngine()
