"""
Service layer for the wishlist feature.
"""

from .contact_registry import ContactRegistry, contact_registry
from .match_engine import ICEBREAKER_TEMPLATES, MatchEngine, match_engine
from .scheduler import MatchScheduler, match_scheduler
from .slot_ledger import SlotLedger, slot_ledger
from .wishlist_service import WishlistService, wishlist_service

__all__ = [
    "ICEBREAKER_TEMPLATES",
    "ContactRegistry",
    "MatchEngine",
    "MatchScheduler",
    "SlotLedger",
    "WishlistService",
    "contact_registry",
    "match_engine",
    "match_scheduler",
    "slot_ledger",
    "wishlist_service",
]
