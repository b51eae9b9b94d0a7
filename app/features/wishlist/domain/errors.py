"""
Error taxonomy for the wishlist feature.

Every error carries the affected user (when known) and whether the caller
can reasonably retry. The API layer maps the three families to HTTP status
codes; services never translate them.
"""


class WishlistError(Exception):
    """Base class for wishlist failures."""

    def __init__(self, message: str, user_id: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.recoverable = recoverable

    @property
    def code(self) -> str:
        """Stable snake_case identifier used in API error bodies."""
        name = type(self).__name__
        return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


# Input problems. Never retried.


class ValidationError(WishlistError):
    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(message, user_id=user_id, recoverable=False)


class InvalidIdentifier(ValidationError):
    pass


class InvalidContactName(ValidationError):
    pass


class InvalidSlot(ValidationError):
    pass


class InvalidMessage(ValidationError):
    pass


# State conflicts. The caller should re-read and decide.


class ConflictError(WishlistError):
    pass


class SlotUnavailable(ConflictError):
    pass


class DuplicateContact(ConflictError):
    pass


class AlreadyMatched(ConflictError):
    pass


class SlotEmpty(ConflictError):
    pass


class HandleAlreadyLinked(ConflictError):
    pass


class NotFoundError(WishlistError):
    pass


class ProfileNotFound(NotFoundError):
    pass


class MatchNotFound(NotFoundError):
    pass


class ProcessingError(WishlistError):
    """A scheduled processing run could not start."""
