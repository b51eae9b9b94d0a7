"""
API subpackage for the wishlist feature.
"""

from .router import router

__all__ = ["router"]
