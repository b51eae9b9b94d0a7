"""
Persistence for registered users (the identity store).

A user row is created from verified auth claims and is the only source of
truth for "which account owns this phone / handle".
"""

from datetime import datetime

import psycopg

from app.db.helpers import execute_query, fetch_one, with_db_retry
from app.features.wishlist.domain import UserIdentity
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class IdentityRepository:
    USER_COLUMNS = "id, phone, instagram_handle, handle_prompt_skipped, created_at"

    @classmethod
    def _row_to_user(cls, row: dict | None) -> UserIdentity | None:
        if not row:
            return None

        return UserIdentity(
            user_id=str(row["id"]),
            phone=row["phone"],
            instagram_handle=row.get("instagram_handle"),
            handle_prompt_skipped=bool(row.get("handle_prompt_skipped", False)),
            created_at=row["created_at"],
        )

    @classmethod
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def get_user(
        cls, user_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> UserIdentity | None:
        query = f"SELECT {cls.USER_COLUMNS} FROM users WHERE id = %s"
        return cls._row_to_user(await fetch_one(query, (user_id,), connection=connection))

    @classmethod
    async def lock_user(
        cls, user_id: str, *, connection: psycopg.AsyncConnection
    ) -> UserIdentity | None:
        """Row-lock the user for the rest of the transaction; serializes wishlist edits."""
        query = f"SELECT {cls.USER_COLUMNS} FROM users WHERE id = %s FOR UPDATE"
        return cls._row_to_user(await fetch_one(query, (user_id,), connection=connection))

    @classmethod
    async def find_by_phone(
        cls, phone: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> UserIdentity | None:
        query = f"SELECT {cls.USER_COLUMNS} FROM users WHERE phone = %s"
        return cls._row_to_user(await fetch_one(query, (phone,), connection=connection))

    @classmethod
    async def find_by_handle(
        cls, handle: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> UserIdentity | None:
        query = f"SELECT {cls.USER_COLUMNS} FROM users WHERE instagram_handle = %s"
        return cls._row_to_user(await fetch_one(query, (handle,), connection=connection))

    @classmethod
    async def create_user(
        cls,
        user_id: str,
        phone: str,
        created_at: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> tuple[UserIdentity, bool]:
        """
        Insert the user if missing.

        Returns (user, created); created is False when the row already existed.
        """
        insert_query = f"""
            INSERT INTO users (id, phone, created_at, updated_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            RETURNING {cls.USER_COLUMNS}
        """
        row = await fetch_one(
            insert_query, (user_id, phone, created_at, created_at), connection=connection
        )
        if row:
            logger.info("User registered", user_id=user_id)
            return cls._row_to_user(row), True

        existing = await cls.get_user(user_id, connection=connection)
        return existing, False

    @classmethod
    async def set_handle(
        cls, user_id: str, handle: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> UserIdentity | None:
        query = f"""
            UPDATE users
            SET instagram_handle = %s,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {cls.USER_COLUMNS}
        """
        return cls._row_to_user(await fetch_one(query, (handle, user_id), connection=connection))

    @classmethod
    async def set_handle_prompt_skipped(
        cls, user_id: str, skipped: bool, *, connection: psycopg.AsyncConnection | None = None
    ) -> bool:
        query = """
            UPDATE users
            SET handle_prompt_skipped = %s,
                updated_at = NOW()
            WHERE id = %s
        """
        return await execute_query(query, (skipped, user_id), connection=connection) > 0
