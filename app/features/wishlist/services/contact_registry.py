"""
Contact registry: per-owner, deduplicated contacts.

Raw identifiers are normalized once here; everything downstream compares
normalized values only.
"""

import psycopg

from app.config import settings
from app.db.helpers import DatabaseError
from app.features.wishlist.domain import (
    Contact,
    IdentifierType,
    InvalidContactName,
    InvalidIdentifier,
    UserIdentity,
)
from app.features.wishlist.domain.normalization import normalize_identifier
from app.features.wishlist.repository import ContactRepository, IdentityRepository
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MAX_CONTACT_NAME_LENGTH = 100


def coerce_identifier_type(value: IdentifierType | str) -> IdentifierType:
    try:
        return IdentifierType(value)
    except ValueError as e:
        raise InvalidIdentifier(f"Unknown identifier type: {value!r}") from e


class ContactRegistry:
    def __init__(
        self,
        contacts=ContactRepository,
        identities=IdentityRepository,
        country_code: str | None = None,
    ):
        self._contacts = contacts
        self._identities = identities
        self._country_code = country_code or settings.PHONE_COUNTRY_CODE

    def normalize(self, identifier_type: IdentifierType | str, raw_identifier: str) -> str:
        return normalize_identifier(
            coerce_identifier_type(identifier_type),
            raw_identifier,
            country_code=self._country_code,
        )

    async def resolve_or_create(
        self,
        owner_id: str,
        name: str,
        identifier_type: IdentifierType | str,
        raw_identifier: str,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Contact:
        """
        Return the owner's contact for this identifier, creating it if needed.

        An existing contact keeps its stored name.

        Raises:
            InvalidIdentifier: identifier does not normalize
            InvalidContactName: name is blank or too long
        """
        identifier_type = coerce_identifier_type(identifier_type)
        identifier = self.normalize(identifier_type, raw_identifier)

        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidContactName("Contact name is required", user_id=owner_id)
        if len(clean_name) > MAX_CONTACT_NAME_LENGTH:
            raise InvalidContactName(
                f"Contact name must be at most {MAX_CONTACT_NAME_LENGTH} characters",
                user_id=owner_id,
            )

        existing = await self._contacts.find_by_identifier(
            owner_id, identifier_type, identifier, connection=connection
        )
        if existing:
            return existing

        created = await self._contacts.create(
            owner_id, clean_name, identifier_type, identifier, connection=connection
        )
        if created:
            return created

        # A concurrent insert won; its row is visible to a fresh statement.
        existing = await self._contacts.find_by_identifier(
            owner_id, identifier_type, identifier, connection=connection
        )
        if existing is None:
            raise DatabaseError(
                "Contact insert conflicted but no existing row was found",
                operation="resolve_or_create",
            )
        return existing

    async def find_by_identity(
        self,
        identifier: str,
        identifier_type: IdentifierType,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> UserIdentity | None:
        """Registered user owning a normalized phone or handle, if any."""
        if identifier_type is IdentifierType.PHONE:
            return await self._identities.find_by_phone(identifier, connection=connection)
        return await self._identities.find_by_handle(identifier, connection=connection)

    async def resolve_user(
        self, contact: Contact, *, connection: psycopg.AsyncConnection | None = None
    ) -> UserIdentity | None:
        return await self.find_by_identity(
            contact.identifier, contact.identifier_type, connection=connection
        )


contact_registry = ContactRegistry()
