"""Weekly reveal schedule arithmetic."""

from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo


def next_run(
    now: datetime,
    *,
    weekday: int,
    hour: int,
    minute: int = 0,
    timezone: str = "America/New_York",
) -> datetime:
    """
    Next occurrence of weekday at hour:minute local time, strictly after now.

    The wall-clock time is rebuilt for the target date, so the result follows
    daylight saving changes. Returned in UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    zone = ZoneInfo(timezone)
    local_now = now.astimezone(zone)
    run_at = time(hour, minute)

    target_date = local_now.date() + timedelta(days=(weekday - local_now.weekday()) % 7)
    candidate = datetime.combine(target_date, run_at, tzinfo=zone)
    if candidate <= now:
        candidate = datetime.combine(target_date + timedelta(days=7), run_at, tzinfo=zone)

    return candidate.astimezone(UTC)
