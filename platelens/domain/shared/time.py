"""UTC timestamp helpers for document fields."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (document timestamp format)."""
    return utc_now().isoformat()


def iso_to_datetime(iso_str: str) -> datetime:
    """
    Convert ISO string to timezone-aware datetime.

    Args:
        iso_str: ISO 8601 string

    Returns:
        Timezone-aware datetime (naive strings are assumed UTC)
    """
    dt = datetime.fromisoformat(iso_str)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
