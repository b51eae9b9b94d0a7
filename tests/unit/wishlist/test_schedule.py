from datetime import UTC, datetime, timedelta

import pytest

from app.features.wishlist.domain.schedule import next_run
from app.features.wishlist.services import MatchScheduler

THURSDAY_5PM = {"weekday": 3, "hour": 17, "minute": 0, "timezone": "America/New_York"}


def test_next_run_in_winter_is_2200_utc():
    monday = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    assert next_run(monday, **THURSDAY_5PM) == datetime(2024, 1, 4, 22, 0, tzinfo=UTC)


def test_next_run_in_summer_follows_daylight_saving():
    monday = datetime(2024, 7, 1, 12, 0, tzinfo=UTC)
    assert next_run(monday, **THURSDAY_5PM) == datetime(2024, 7, 4, 21, 0, tzinfo=UTC)


def test_next_run_is_strictly_after_now():
    exactly = datetime(2024, 1, 4, 22, 0, tzinfo=UTC)
    assert next_run(exactly, **THURSDAY_5PM) == datetime(2024, 1, 11, 22, 0, tzinfo=UTC)


def test_next_run_later_on_reveal_day_rolls_to_next_week():
    evening = datetime(2024, 1, 4, 23, 30, tzinfo=UTC)
    assert next_run(evening, **THURSDAY_5PM) == datetime(2024, 1, 11, 22, 0, tzinfo=UTC)


def test_next_run_treats_naive_time_as_utc():
    naive = datetime(2024, 1, 1, 12, 0)
    assert next_run(naive, **THURSDAY_5PM) == datetime(2024, 1, 4, 22, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_scheduler_uses_recorded_next_run(store):
    scheduler = MatchScheduler(schedule=store.schedule, config=THURSDAY_5PM)
    now = datetime(2024, 1, 4, 22, 0, tzinfo=UTC)

    assert await scheduler.next_processing_at(now) == datetime(2024, 1, 11, 22, 0, tzinfo=UTC)

    state = await scheduler.record_run(now)

    assert state.last_processed_at == now
    assert await scheduler.next_processing_at(now) == state.next_processing_at
    assert await scheduler.time_remaining(now) == timedelta(days=7)
