"""
Domain subpackage for the wishlist feature.
"""

from .errors import (
    AlreadyMatched,
    ConflictError,
    DuplicateContact,
    HandleAlreadyLinked,
    InvalidContactName,
    InvalidIdentifier,
    InvalidMessage,
    InvalidSlot,
    MatchNotFound,
    NotFoundError,
    ProcessingError,
    ProfileNotFound,
    SlotEmpty,
    SlotUnavailable,
    ValidationError,
    WishlistError,
)
from .models import (
    Contact,
    IcebreakerIntent,
    IdentifierType,
    LockReason,
    Match,
    MatchView,
    ProcessingSummary,
    ScheduleState,
    SlotAvailability,
    SlotStatus,
    SlotView,
    UserIdentity,
    WishlistEntry,
)

__all__ = [
    "AlreadyMatched",
    "ConflictError",
    "Contact",
    "DuplicateContact",
    "HandleAlreadyLinked",
    "IcebreakerIntent",
    "IdentifierType",
    "InvalidContactName",
    "InvalidIdentifier",
    "InvalidMessage",
    "InvalidSlot",
    "LockReason",
    "Match",
    "MatchNotFound",
    "MatchView",
    "NotFoundError",
    "ProcessingError",
    "ProcessingSummary",
    "ProfileNotFound",
    "ScheduleState",
    "SlotAvailability",
    "SlotEmpty",
    "SlotStatus",
    "SlotUnavailable",
    "SlotView",
    "UserIdentity",
    "ValidationError",
    "WishlistEntry",
    "WishlistError",
]
