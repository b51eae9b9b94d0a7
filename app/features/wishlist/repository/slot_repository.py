"""
Persistence for wishlist entries and slot availability.

wishlist_entries holds at most one contact per (owner, slot) and one slot per
(owner, contact). slot_unlocks holds the earliest fill time per slot; a
missing row means the slot has never been held back.
"""

from datetime import datetime

import psycopg

from app.db.helpers import execute_query, fetch_all, fetch_one, fetch_val
from app.features.wishlist.domain import LockReason, SlotAvailability, WishlistEntry
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SlotRepository:
    ENTRY_COLUMNS = "id, user_id, slot_number, contact_id, created_at"

    @classmethod
    def _row_to_entry(cls, row: dict | None) -> WishlistEntry | None:
        if not row:
            return None

        return WishlistEntry(
            id=str(row["id"]),
            owner_id=str(row["user_id"]),
            slot_number=row["slot_number"],
            contact_id=str(row["contact_id"]),
            created_at=row["created_at"],
        )

    @classmethod
    def _row_to_availability(cls, row: dict | None) -> SlotAvailability | None:
        if not row:
            return None

        return SlotAvailability(
            slot_number=row["slot_number"],
            available_at=row["unlocks_at"],
            reason=LockReason(row["reason"]),
        )

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @classmethod
    async def get_entry(
        cls, owner_id: str, slot_number: int, *, connection: psycopg.AsyncConnection | None = None
    ) -> WishlistEntry | None:
        query = f"""
            SELECT {cls.ENTRY_COLUMNS}
            FROM wishlist_entries
            WHERE user_id = %s AND slot_number = %s
        """
        row = await fetch_one(query, (owner_id, slot_number), connection=connection)
        return cls._row_to_entry(row)

    @classmethod
    async def get_entry_for_contact(
        cls, owner_id: str, contact_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> WishlistEntry | None:
        query = f"""
            SELECT {cls.ENTRY_COLUMNS}
            FROM wishlist_entries
            WHERE user_id = %s AND contact_id = %s
        """
        row = await fetch_one(query, (owner_id, contact_id), connection=connection)
        return cls._row_to_entry(row)

    @classmethod
    async def entry_exists(
        cls, owner_id: str, contact_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> bool:
        query = """
            SELECT EXISTS (
                SELECT 1 FROM wishlist_entries WHERE user_id = %s AND contact_id = %s
            )
        """
        return bool(await fetch_val(query, (owner_id, contact_id), connection=connection))

    @classmethod
    async def list_entries(
        cls, owner_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> list[WishlistEntry]:
        query = f"""
            SELECT {cls.ENTRY_COLUMNS}
            FROM wishlist_entries
            WHERE user_id = %s
            ORDER BY slot_number
        """
        rows = await fetch_all(query, (owner_id,), connection=connection)
        return [cls._row_to_entry(row) for row in rows]

    @classmethod
    async def insert_entry(
        cls,
        owner_id: str,
        slot_number: int,
        contact_id: str,
        created_at: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> WishlistEntry | None:
        """Insert an entry; None when the slot or the contact is already taken."""
        query = f"""
            INSERT INTO wishlist_entries (user_id, slot_number, contact_id, created_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT DO NOTHING
            RETURNING {cls.ENTRY_COLUMNS}
        """
        row = await fetch_one(
            query, (owner_id, slot_number, contact_id, created_at), connection=connection
        )
        return cls._row_to_entry(row)

    @classmethod
    async def delete_entry(
        cls, owner_id: str, slot_number: int, *, connection: psycopg.AsyncConnection | None = None
    ) -> WishlistEntry | None:
        query = f"""
            DELETE FROM wishlist_entries
            WHERE user_id = %s AND slot_number = %s
            RETURNING {cls.ENTRY_COLUMNS}
        """
        row = await fetch_one(query, (owner_id, slot_number), connection=connection)
        return cls._row_to_entry(row)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    @classmethod
    async def get_availability(
        cls, owner_id: str, slot_number: int, *, connection: psycopg.AsyncConnection | None = None
    ) -> SlotAvailability | None:
        query = """
            SELECT slot_number, unlocks_at, reason
            FROM slot_unlocks
            WHERE user_id = %s AND slot_number = %s
        """
        row = await fetch_one(query, (owner_id, slot_number), connection=connection)
        return cls._row_to_availability(row)

    @classmethod
    async def list_availability(
        cls, owner_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> dict[int, SlotAvailability]:
        query = """
            SELECT slot_number, unlocks_at, reason
            FROM slot_unlocks
            WHERE user_id = %s
        """
        rows = await fetch_all(query, (owner_id,), connection=connection)
        held = (cls._row_to_availability(row) for row in rows)
        return {item.slot_number: item for item in held}

    @classmethod
    async def set_availability(
        cls,
        owner_id: str,
        slot_number: int,
        available_at: datetime,
        reason: LockReason,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> None:
        query = """
            INSERT INTO slot_unlocks (user_id, slot_number, unlocks_at, reason, updated_at)
            VALUES (%s, %s, %s, %s, NOW())
            ON CONFLICT (user_id, slot_number) DO UPDATE
            SET unlocks_at = EXCLUDED.unlocks_at,
                reason = EXCLUDED.reason,
                updated_at = NOW()
        """
        await execute_query(
            query, (owner_id, slot_number, available_at, reason.value), connection=connection
        )
        logger.info(
            "Slot availability updated",
            user_id=owner_id,
            slot_number=slot_number,
            available_at=available_at.isoformat(),
            reason=reason.value,
        )

    @classmethod
    async def seed_availability(
        cls,
        owner_id: str,
        rows: list[SlotAvailability],
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> int:
        """Create initial availability rows, leaving existing ones untouched."""
        if not rows:
            return 0

        query = """
            INSERT INTO slot_unlocks (user_id, slot_number, unlocks_at, reason)
            SELECT %s, slot_number, unlocks_at, reason
            FROM UNNEST(%s::smallint[], %s::timestamptz[], %s::text[])
                AS seed(slot_number, unlocks_at, reason)
            ON CONFLICT (user_id, slot_number) DO NOTHING
        """
        params = (
            owner_id,
            [row.slot_number for row in rows],
            [row.available_at for row in rows],
            [row.reason.value for row in rows],
        )
        return await execute_query(query, params, connection=connection)
