"""Translate wishlist errors into HTTP responses."""

from fastapi import HTTPException, status

from app.features.wishlist.domain import (
    ConflictError,
    NotFoundError,
    ProcessingError,
    ValidationError,
    WishlistError,
)

_STATUS_BY_FAMILY = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ProcessingError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_error(error: WishlistError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for family, code in _STATUS_BY_FAMILY:
        if isinstance(error, family):
            status_code = code
            break

    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )
