"""
Persistence for per-owner contacts.

Identifiers are stored normalized; (owner, type, identifier) is unique so a
second insert of the same identifier resolves to the existing row.
"""

from collections.abc import Iterable

import psycopg

from app.db.helpers import fetch_all, fetch_one
from app.features.wishlist.domain import Contact, IdentifierType
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_IDENTIFIER_COLUMN = {
    IdentifierType.PHONE: "phone",
    IdentifierType.HANDLE: "instagram_handle",
}


class ContactRepository:
    CONTACT_COLUMNS = "id, user_id, name, contact_type, phone, instagram_handle, created_at"

    @classmethod
    def _row_to_contact(cls, row: dict | None) -> Contact | None:
        if not row:
            return None

        return Contact(
            id=str(row["id"]),
            owner_id=str(row["user_id"]),
            name=row["name"],
            identifier_type=IdentifierType(row["contact_type"]),
            phone=row.get("phone"),
            instagram_handle=row.get("instagram_handle"),
            created_at=row["created_at"],
        )

    @classmethod
    async def find_by_identifier(
        cls,
        owner_id: str,
        identifier_type: IdentifierType,
        identifier: str,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Contact | None:
        column = _IDENTIFIER_COLUMN[identifier_type]
        query = f"""
            SELECT {cls.CONTACT_COLUMNS}
            FROM contacts
            WHERE user_id = %s AND contact_type = %s AND {column} = %s
        """
        row = await fetch_one(
            query, (owner_id, identifier_type.value, identifier), connection=connection
        )
        return cls._row_to_contact(row)

    @classmethod
    async def create(
        cls,
        owner_id: str,
        name: str,
        identifier_type: IdentifierType,
        identifier: str,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Contact | None:
        """Insert a contact; None when an equal identifier already exists for the owner."""
        phone = identifier if identifier_type is IdentifierType.PHONE else None
        handle = identifier if identifier_type is IdentifierType.HANDLE else None

        query = f"""
            INSERT INTO contacts (user_id, name, contact_type, phone, instagram_handle)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT DO NOTHING
            RETURNING {cls.CONTACT_COLUMNS}
        """
        row = await fetch_one(
            query,
            (owner_id, name, identifier_type.value, phone, handle),
            connection=connection,
        )
        contact = cls._row_to_contact(row)
        if contact:
            logger.info(
                "Contact created",
                user_id=owner_id,
                contact_id=contact.id,
                contact_type=identifier_type.value,
            )
        return contact

    @classmethod
    async def get_many(
        cls, contact_ids: Iterable[str], *, connection: psycopg.AsyncConnection | None = None
    ) -> dict[str, Contact]:
        ids = list(dict.fromkeys(contact_ids))
        if not ids:
            return {}

        query = f"SELECT {cls.CONTACT_COLUMNS} FROM contacts WHERE id = ANY(%s)"
        rows = await fetch_all(query, (ids,), connection=connection)
        contacts = (cls._row_to_contact(row) for row in rows)
        return {contact.id: contact for contact in contacts}

    @classmethod
    async def find_representing(
        cls,
        owner_id: str,
        phone: str | None,
        handle: str | None,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> list[Contact]:
        """Contacts of owner_id that point at the given phone and/or handle."""
        if not phone and not handle:
            return []

        query = f"""
            SELECT {cls.CONTACT_COLUMNS}
            FROM contacts
            WHERE user_id = %s
              AND (
                (contact_type = 'phone' AND phone = %s)
                OR (contact_type = 'handle' AND instagram_handle = %s)
              )
            ORDER BY created_at
        """
        rows = await fetch_all(query, (owner_id, phone, handle), connection=connection)
        return [cls._row_to_contact(row) for row in rows]
