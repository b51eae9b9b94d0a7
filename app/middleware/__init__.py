"""
HTTP middleware for the wishlist backend.
"""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
