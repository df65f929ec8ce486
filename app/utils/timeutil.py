from datetime import datetime, timezone


def parse_iso8601(value):
    """Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

    Accepts a trailing ``Z``. Naive values are taken to be UTC already.
    Raises ``ValueError`` for anything that is not a timestamp string.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    s = value.strip()
    if s.endswith('Z') or s.endswith('z'):
        s = s[:-1] + '+00:00'
    return to_utc(datetime.fromisoformat(s))


def to_utc(dt):
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_z(dt):
    """Return an ISO-8601 timestamp in UTC with a Z suffix."""
    if dt is None:
        return None
    return to_utc(dt).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
