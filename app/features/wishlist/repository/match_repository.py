"""
Persistence for matches and icebreaker intents.

The unique index on (LEAST(user1_id, user2_id), GREATEST(user1_id, user2_id))
guarantees one match per unordered pair, so concurrent reciprocity checks
cannot create duplicates. State-changing updates are guarded by
"NOT is_revealed" so a revealed match is never altered.
"""

from datetime import datetime

import psycopg

from app.db.helpers import execute_query, fetch_all, fetch_one, fetch_val
from app.features.wishlist.domain import IcebreakerIntent, Match
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class MatchRepository:
    MATCH_COLUMNS = """
        id, user1_id, user2_id, contact1_id, contact2_id,
        is_revealed, created_at, revealed_at
    """

    @classmethod
    def _row_to_match(cls, row: dict | None) -> Match | None:
        if not row:
            return None

        return Match(
            id=str(row["id"]),
            user1_id=str(row["user1_id"]),
            user2_id=str(row["user2_id"]),
            contact1_id=str(row["contact1_id"]),
            contact2_id=str(row["contact2_id"]),
            is_revealed=bool(row["is_revealed"]),
            created_at=row["created_at"],
            revealed_at=row.get("revealed_at"),
        )

    @classmethod
    async def get(
        cls, match_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> Match | None:
        query = f"SELECT {cls.MATCH_COLUMNS} FROM matches WHERE id = %s"
        return cls._row_to_match(await fetch_one(query, (match_id,), connection=connection))

    @classmethod
    async def find_for_pair(
        cls, user_a: str, user_b: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> Match | None:
        query = f"""
            SELECT {cls.MATCH_COLUMNS}
            FROM matches
            WHERE LEAST(user1_id, user2_id) = LEAST(%s::uuid, %s::uuid)
              AND GREATEST(user1_id, user2_id) = GREATEST(%s::uuid, %s::uuid)
        """
        row = await fetch_one(query, (user_a, user_b, user_a, user_b), connection=connection)
        return cls._row_to_match(row)

    @classmethod
    async def lock_pair(
        cls, user_a: str, user_b: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> None:
        """
        Serialize reciprocity checks for one unordered pair of users.

        Transaction-scoped advisory lock, released at commit or rollback. A
        second transaction for the same pair waits here, then reads the
        first one's committed entry.
        """
        query = """
            SELECT pg_advisory_xact_lock(
                hashtextextended(
                    LEAST(%s::text, %s::text) || ':' || GREATEST(%s::text, %s::text), 0
                )
            )
        """
        await execute_query(query, (user_a, user_b, user_a, user_b), connection=connection)

    @classmethod
    async def create(
        cls,
        user1_id: str,
        contact1_id: str,
        user2_id: str,
        contact2_id: str,
        created_at: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Match | None:
        """Insert an unrevealed match; None if the pair already has one."""
        query = f"""
            INSERT INTO matches (
                user1_id, user2_id, contact1_id, contact2_id, is_revealed, created_at
            )
            VALUES (%s, %s, %s, %s, FALSE, %s)
            ON CONFLICT DO NOTHING
            RETURNING {cls.MATCH_COLUMNS}
        """
        row = await fetch_one(
            query,
            (user1_id, user2_id, contact1_id, contact2_id, created_at),
            connection=connection,
        )
        return cls._row_to_match(row)

    @classmethod
    async def delete_unrevealed_for_contact(
        cls, owner_id: str, contact_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> int:
        """Drop pending matches that rely on owner_id's placement of contact_id."""
        query = """
            DELETE FROM matches
            WHERE NOT is_revealed
              AND (
                (user1_id = %s AND contact1_id = %s)
                OR (user2_id = %s AND contact2_id = %s)
              )
        """
        return await execute_query(
            query, (owner_id, contact_id, owner_id, contact_id), connection=connection
        )

    @classmethod
    async def list_unrevealed(
        cls, *, connection: psycopg.AsyncConnection | None = None
    ) -> list[Match]:
        query = f"""
            SELECT {cls.MATCH_COLUMNS}
            FROM matches
            WHERE NOT is_revealed
            ORDER BY created_at
        """
        rows = await fetch_all(query, connection=connection)
        return [cls._row_to_match(row) for row in rows]

    @classmethod
    async def lock_unrevealed(
        cls, match_id: str, *, connection: psycopg.AsyncConnection
    ) -> Match | None:
        """
        Lock a pending match for validation.

        None when the match is gone, already revealed, or held by another run.
        """
        query = f"""
            SELECT {cls.MATCH_COLUMNS}
            FROM matches
            WHERE id = %s AND NOT is_revealed
            FOR UPDATE SKIP LOCKED
        """
        return cls._row_to_match(await fetch_one(query, (match_id,), connection=connection))

    @classmethod
    async def mark_revealed(
        cls,
        match_id: str,
        revealed_at: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> bool:
        query = """
            UPDATE matches
            SET is_revealed = TRUE,
                revealed_at = %s
            WHERE id = %s AND NOT is_revealed
        """
        return await execute_query(query, (revealed_at, match_id), connection=connection) > 0

    @classmethod
    async def delete_unrevealed(
        cls, match_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> bool:
        query = "DELETE FROM matches WHERE id = %s AND NOT is_revealed"
        return await execute_query(query, (match_id,), connection=connection) > 0

    @classmethod
    async def list_revealed_for_user(
        cls, user_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> list[Match]:
        query = f"""
            SELECT {cls.MATCH_COLUMNS}
            FROM matches
            WHERE is_revealed AND (user1_id = %s OR user2_id = %s)
            ORDER BY revealed_at DESC
        """
        rows = await fetch_all(query, (user_id, user_id), connection=connection)
        return [cls._row_to_match(row) for row in rows]

    @classmethod
    async def is_revealed_for_contact(
        cls, user_id: str, contact_id: str, *, connection: psycopg.AsyncConnection | None = None
    ) -> bool:
        query = """
            SELECT EXISTS (
                SELECT 1 FROM matches
                WHERE is_revealed
                  AND (
                    (user1_id = %s AND contact1_id = %s)
                    OR (user2_id = %s AND contact2_id = %s)
                  )
            )
        """
        params = (user_id, contact_id, user_id, contact_id)
        return bool(await fetch_val(query, params, connection=connection))

    @classmethod
    async def record_icebreaker(
        cls,
        match_id: str,
        sender_id: str,
        message: str,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> IcebreakerIntent:
        query = """
            INSERT INTO icebreaker_intents (match_id, sender_id, message)
            VALUES (%s, %s, %s)
            RETURNING id, match_id, sender_id, message, created_at
        """
        row = await fetch_one(query, (match_id, sender_id, message), connection=connection)
        logger.info("Icebreaker intent recorded", match_id=match_id, user_id=sender_id)
        return IcebreakerIntent(
            id=str(row["id"]),
            match_id=str(row["match_id"]),
            sender_id=str(row["sender_id"]),
            message=row["message"],
            created_at=row["created_at"],
        )
