"""
Wishlist feature package.

This vertical slice keeps every layer of the mutual wishlist flow co-located
(domain rules, repositories, services, jobs, API router) so contributors can
follow a slot from HTTP request to SQL without hunting through global folders.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as wishlist_router  # noqa: F401
from .services.wishlist_service import WishlistService, wishlist_service  # noqa: F401
from .jobs.match_processing_job import match_processing_job, start_match_processing_scheduler  # noqa: F401
from .domain.models import Contact, Match, SlotView, WishlistEntry  # noqa: F401
