"""Persistence for match processing bookkeeping (the match_processing table)."""

from datetime import datetime

import psycopg

from app.db.helpers import fetch_one, with_db_retry
from app.features.wishlist.domain import ScheduleState


class ScheduleRepository:
    @classmethod
    def _row_to_state(cls, row: dict | None) -> ScheduleState | None:
        if not row:
            return None
        return ScheduleState(
            last_processed_at=row.get("last_processed_at"),
            next_processing_at=row["next_processing_at"],
        )

    @classmethod
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def get_latest(
        cls, *, connection: psycopg.AsyncConnection | None = None
    ) -> ScheduleState | None:
        query = """
            SELECT last_processed_at, next_processing_at
            FROM match_processing
            ORDER BY created_at DESC, id DESC
            LIMIT 1
        """
        return cls._row_to_state(await fetch_one(query, connection=connection))

    @classmethod
    async def save(
        cls,
        last_processed_at: datetime,
        next_processing_at: datetime,
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> ScheduleState:
        """Update the latest bookkeeping row, inserting the first one if none exists."""
        update_query = """
            UPDATE match_processing
            SET last_processed_at = %s,
                next_processing_at = %s
            WHERE id = (SELECT id FROM match_processing ORDER BY created_at DESC, id DESC LIMIT 1)
            RETURNING last_processed_at, next_processing_at
        """
        row = await fetch_one(
            update_query, (last_processed_at, next_processing_at), connection=connection
        )
        if row is None:
            insert_query = """
                INSERT INTO match_processing (last_processed_at, next_processing_at)
                VALUES (%s, %s)
                RETURNING last_processed_at, next_processing_at
            """
            row = await fetch_one(
                insert_query, (last_processed_at, next_processing_at), connection=connection
            )
        return cls._row_to_state(row)
