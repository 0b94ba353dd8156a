from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def local_today(tz_name: str) -> date:
    """Calendar date right now in the given IANA timezone.

    Round schedules are published as plain YYYY-MM-DD strings in the league's
    local time, so "today" has to be read there and not in UTC.
    """
    return utcnow().astimezone(ZoneInfo(tz_name)).date()


def parse_iso_date(value: str) -> date | None:
    """Parse the leading YYYY-MM-DD of a date string, None when unparseable."""
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def ensure_utc(dt: datetime) -> datetime:
    """Make a naive datetime timezone-aware (UTC). Already-aware datetimes pass through."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime, None when unparseable."""
    if not value:
        return None
    try:
        return ensure_utc(datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")))
    except ValueError:
        return None
