"""
Reveal scheduler bookkeeping.

The weekly slot is configured in settings (Thursday 17:00 America/New_York by
default). The latest match_processing row records when processing last ran
and when it is due next.
"""

from datetime import datetime, timedelta

from app.config import settings
from app.features.wishlist.domain import ScheduleState
from app.features.wishlist.domain import schedule as schedule_rules
from app.features.wishlist.domain.countdown import remaining
from app.features.wishlist.repository import ScheduleRepository
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class MatchScheduler:
    def __init__(self, schedule=ScheduleRepository, config: dict | None = None):
        self._schedule = schedule
        self._config = config or settings.get_match_schedule_config()

    def next_run(self, now: datetime) -> datetime:
        """Next scheduled reveal strictly after now."""
        return schedule_rules.next_run(now, **self._config)

    async def record_run(self, now: datetime) -> ScheduleState:
        state = await self._schedule.save(now, self.next_run(now))
        logger.info(
            "Match processing run recorded",
            last_processed_at=now.isoformat(),
            next_processing_at=state.next_processing_at.isoformat(),
        )
        return state

    async def next_processing_at(self, now: datetime) -> datetime:
        state = await self._schedule.get_latest()
        if state is None:
            return self.next_run(now)
        return state.next_processing_at

    async def time_remaining(self, now: datetime) -> timedelta:
        return remaining(await self.next_processing_at(now), now)


match_scheduler = MatchScheduler()
