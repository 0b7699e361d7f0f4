from __future__ import annotations

from datetime import UTC, datetime, timedelta

# XML-RPC style dateTime.iso8601 sent by older Bugzilla installs, e.g. "20130105T01:48:32".
_COMPACT_FORMAT = "%Y%m%dT%H:%M:%S"


def parse_bugzilla_datetime(value: str) -> datetime:
    """Parse a Bugzilla timestamp into an aware datetime.

    The REST API sends UTC as "2013-01-05T01:48:32Z". Values without an offset
    are UTC as well.
    """
    text = value.strip()
    if len(text) == 17 and text[8] == "T":
        dt = datetime.strptime(text, _COMPACT_FORMAT)
    else:
        dt = datetime.fromisoformat(text.removesuffix("Z"))
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def to_iso(dt: datetime) -> str:
    """Render ``dt`` in Bugzilla's own UTC form, ``YYYY-MM-DDTHH:MM:SSZ``."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_day(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"


def today_bounds(now: datetime | None = None) -> tuple[str, str]:
    """Return the ``(after, before)`` day pair used by the "today" filters.

    ``after`` is the current day and ``before`` the day 24 hours later.
    """
    now = now or datetime.now().astimezone()
    return format_day(now), format_day(now + timedelta(hours=24))
