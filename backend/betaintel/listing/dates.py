"""Date helpers pinned to the dashboard's display timezone.

Wall-clock input without an explicit offset is always interpreted in the
display timezone, never in the server's local zone.
"""

import re
from datetime import date, datetime, time, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

END_OF_DAY = time(23, 59, 59, 999999)
DISPLAY_FORMAT = "%d/%m/%Y %H:%M:%S"

# "+03:00" arrives as " 03:00" when the client forgets to encode the plus sign
_MANGLED_OFFSET = re.compile(r"^(.+[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?) (\d{2}:?\d{2})$")


@lru_cache(maxsize=8)
def get_timezone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def parse_date_input(raw: str | None) -> date | datetime | None:
    """Parse a ``from``/``to`` query value.

    Returns a ``date`` for bare calendar dates, a ``datetime`` (aware when
    the input carried an offset) otherwise, and ``None`` for anything
    unparseable.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    mangled = _MANGLED_OFFSET.match(text)
    if mangled:
        text = f"{mangled.group(1)}+{mangled.group(2)}"
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_time_of_day(raw: str | None) -> time | None:
    """Parse ``HH:MM`` or ``HH:MM:SS``; anything else is ignored."""
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        return time.fromisoformat(text)
    except ValueError:
        return None


def localize(value: date | datetime, tz: ZoneInfo, default_time: time) -> datetime:
    """Pin a date or naive datetime to ``tz``; aware datetimes pass through."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value
        return value.replace(tzinfo=tz)
    return datetime.combine(value, default_time, tzinfo=tz)


def local_date(value: date | datetime, tz: ZoneInfo) -> date:
    """Calendar date of ``value`` as seen in ``tz``."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(tz).date()
        return value.date()
    return value


def to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def format_local(value: datetime, tz: ZoneInfo) -> str:
    """Render an instant for display; naive values are assumed to be UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime(DISPLAY_FORMAT)


def local_today(tz: ZoneInfo) -> date:
    return datetime.now(tz).date()
