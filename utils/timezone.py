"""UTC-everywhere time handling for invoices, nonces and cache entries."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 datetime string to UTC datetime.

    Accepts a trailing "Z" for UTC. Raises ValueError if string has no
    timezone info.
    """
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot parse naive datetime string. "
            "Include timezone offset (e.g., 'Z' or '+00:00')."
        )
    return to_utc(dt)


def epoch_millis(dt: datetime | None = None) -> int:
    """
    Milliseconds since the Unix epoch.

    The processor expects request nonces in this form, so outbound
    nonces are strictly increasing across a single process.
    """
    dt = to_utc(dt) if dt is not None else now_utc()
    return int(dt.timestamp() * 1000)
