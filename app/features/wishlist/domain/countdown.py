"""Pure helpers for "time left until X" displays."""

from datetime import datetime, timedelta


def remaining(target: datetime, now: datetime) -> timedelta:
    """Time from now until target, never negative."""
    return max(target - now, timedelta(0))


def format_countdown(duration: timedelta) -> str:
    """Render a duration as "2d 4h 15m", dropping leading zero units."""
    total_minutes = max(int(duration.total_seconds()) // 60, 0)
    days, rest = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rest, 60)

    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
