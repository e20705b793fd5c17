"""Timezone resolution and display formatting for call metadata."""

import calendar
import logging
import zoneinfo
from datetime import datetime, time, tzinfo

logger = logging.getLogger(__name__)

UTC = zoneinfo.ZoneInfo("UTC")


def resolve_timezone(name: str | None = None) -> tzinfo:
    """Return the named IANA zone, or the system's local zone."""
    if name:
        try:
            return zoneinfo.ZoneInfo(name)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using the system zone", name)
    return datetime.now().astimezone().tzinfo or UTC


def ensure_aware(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_date(value: str, tz: tzinfo, end_of_day: bool = False) -> datetime:
    """Parse an ISO date or datetime and snap it to the start or end of its day in *tz*."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    day = parsed.astimezone(tz).date()
    return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=tz)


def months_ago(now: datetime, months: int) -> datetime:
    """Same day-of-month *months* earlier, clamped to the month's length."""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def default_search_range(tz: tzinfo, lookback_months: int) -> tuple[datetime, datetime]:
    """Start of the day *lookback_months* ago through the end of today."""
    now = datetime.now(tz)
    start = datetime.combine(months_ago(now, lookback_months).date(), time.min, tzinfo=tz)
    end = datetime.combine(now.date(), time.max, tzinfo=tz)
    return start, end


def format_call_date(dt: datetime | None, tz: tzinfo) -> str:
    """Format a call start time for display, e.g. ``Mar 23, 2025, 10:00 AM``."""
    if dt is None:
        return "Unknown"
    return ensure_aware(dt).astimezone(tz).strftime("%b %d, %Y, %I:%M %p")


def format_duration(seconds: int | float | None) -> str:
    """Render a duration in seconds as ``1h 5m`` or ``45m``."""
    if not seconds:
        return "Unknown"
    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
