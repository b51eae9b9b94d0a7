"""
Domain records for the wishlist feature.

Repositories build these from rows, services pass them around, and the API
layer converts them into response models. They carry no persistence logic.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class IdentifierType(str, Enum):
    PHONE = "phone"
    HANDLE = "handle"


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    FILLED = "filled"
    LOCKED = "locked"


class LockReason(str, Enum):
    INITIAL = "initial"
    DELETION = "deletion"
    MATCH = "match"


@dataclass(slots=True)
class UserIdentity:
    """A registered user as the wishlist engine sees them."""

    user_id: str
    phone: str
    instagram_handle: str | None
    handle_prompt_skipped: bool
    created_at: datetime


@dataclass(slots=True)
class Contact:
    """Somebody an owner can place on their wishlist."""

    id: str
    owner_id: str
    name: str
    identifier_type: IdentifierType
    phone: str | None
    instagram_handle: str | None
    created_at: datetime

    @property
    def identifier(self) -> str:
        if self.identifier_type is IdentifierType.PHONE:
            return self.phone or ""
        return self.instagram_handle or ""


@dataclass(slots=True)
class WishlistEntry:
    id: str
    owner_id: str
    slot_number: int
    contact_id: str
    created_at: datetime


@dataclass(slots=True)
class SlotAvailability:
    """Earliest moment a slot may be filled, and why it was held back."""

    slot_number: int
    available_at: datetime
    reason: LockReason


@dataclass(slots=True)
class SlotView:
    """Read model for one slot of a wishlist at a given instant."""

    slot_number: int
    status: SlotStatus
    contact: Contact | None = None
    is_matched: bool = False
    available_at: datetime | None = None
    lock_reason: LockReason | None = None
    remaining: timedelta | None = None


@dataclass(slots=True)
class Match:
    """
    A reciprocal pair of wishlist placements.

    contact1 is owned by user1 and represents user2; contact2 is owned by
    user2 and represents user1.
    """

    id: str
    user1_id: str
    user2_id: str
    contact1_id: str
    contact2_id: str
    is_revealed: bool
    created_at: datetime
    revealed_at: datetime | None = None

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def side_of(self, user_id: str) -> tuple[str, str]:
        """(other user id, contact id owned by user_id) for one participant."""
        if user_id == self.user1_id:
            return self.user2_id, self.contact1_id
        if user_id == self.user2_id:
            return self.user1_id, self.contact2_id
        raise ValueError(f"user {user_id} is not part of match {self.id}")


@dataclass(slots=True)
class MatchView:
    """A revealed match from one participant's point of view."""

    match_id: str
    contact: Contact
    revealed_at: datetime | None


@dataclass(slots=True)
class ProcessingSummary:
    revealed_count: int = 0
    invalidated_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0

    @property
    def processed_count(self) -> int:
        return self.revealed_count + self.invalidated_count

    def as_dict(self) -> dict[str, int]:
        return {
            "revealed_count": self.revealed_count,
            "invalidated_count": self.invalidated_count,
            "skipped_count": self.skipped_count,
            "failed_count": self.failed_count,
        }


@dataclass(slots=True)
class ScheduleState:
    last_processed_at: datetime | None
    next_processing_at: datetime


@dataclass(slots=True)
class IcebreakerIntent:
    id: str
    match_id: str
    sender_id: str
    message: str
    created_at: datetime
