"""UTC datetime utilities."""

from datetime import datetime, timezone


def from_unix(seconds: int | None) -> datetime | None:
    """Convert a processor unix timestamp (seconds) to an aware UTC datetime."""
    if seconds is None:
        return None
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
