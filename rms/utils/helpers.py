"""Timestamp helpers shared by services, stores and blueprints.

parse_timestamp:  request input → aware UTC datetime (raises ValueError)
isoformat:        datetime → ISO-8601 string, None passes through
as_utc:           naive datetimes from SQLite are treated as UTC
"""
from datetime import date, datetime, time, timezone


def as_utc(value):
    """Attach UTC to a naive datetime; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value):
    """Parse an ISO date or datetime into an aware UTC datetime.

    A bare date (YYYY-MM-DD) becomes midnight UTC of that day. A trailing
    ``Z`` is accepted. Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"not a date: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def isoformat(value):
    """Render a datetime as ISO-8601 UTC; None stays None."""
    if value is None:
        return None
    return as_utc(value).isoformat()
