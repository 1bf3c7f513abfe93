import logging
from datetime import date, datetime, time, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("utils.dates")


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Look up an IANA zone, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def parse_due(maybe: Any, tz: tzinfo) -> Optional[datetime]:
    """Parse a task due date into an aware datetime.

    Date-only values mean midnight in `tz`; naive datetimes are taken in `tz`;
    values carrying an offset are converted to `tz`.
    """
    if not maybe:
        return None

    if isinstance(maybe, datetime):
        dt = maybe
    elif isinstance(maybe, date):
        return datetime.combine(maybe, time.min, tzinfo=tz)
    elif isinstance(maybe, str):
        text = maybe.strip()
        try:
            if len(text) == 10:
                return datetime.combine(date.fromisoformat(text), time.min, tzinfo=tz)
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable due date %r", maybe)
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def hour_slot(now: datetime) -> str:
    """HH:00 for the hour `now` falls in."""
    return f"{now.hour:02d}:00"


def sunday_weekday(now: datetime) -> int:
    """Weekday index with 0 = Sunday ... 6 = Saturday."""
    return (now.weekday() + 1) % 7
