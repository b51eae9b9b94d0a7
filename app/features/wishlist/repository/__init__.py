"""
Repository subpackage for the wishlist feature.
"""

from .contact_repository import ContactRepository
from .identity_repository import IdentityRepository
from .match_repository import MatchRepository
from .schedule_repository import ScheduleRepository
from .slot_repository import SlotRepository

__all__ = [
    "ContactRepository",
    "IdentityRepository",
    "MatchRepository",
    "ScheduleRepository",
    "SlotRepository",
]
