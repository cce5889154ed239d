"""Timestamp helpers."""

from datetime import datetime, timedelta, timezone


def now() -> str:
    """Compact local timestamp for directory names, e.g. 20251114_123456."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def now_exact() -> str:
    """UTC ISO 8601 timestamp with microseconds, used for persisted records."""
    return datetime.now(timezone.utc).isoformat()


def today() -> str:
    """Local date as YYYY-MM-DD."""
    return datetime.now().strftime("%Y-%m-%d")


def days_ago(days: int) -> str:
    """UTC ISO 8601 timestamp for the instant `days` days before now."""
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def format_timestamp(iso_timestamp: str, relative: bool = False) -> str:
    """
    Format ISO 8601 timestamp to readable format.

    Args:
        iso_timestamp: ISO 8601 formatted timestamp string
        relative: If True, show compact relative time (e.g., "2h ago")

    Returns:
        Human-readable timestamp, or the input unchanged if it cannot be parsed

    Examples:
        format_timestamp("2025-11-13T18:45:40.572549+00:00")
        # "2025-11-13 18:45:40"
    """
    try:
        dt = datetime.fromisoformat(iso_timestamp)
    except (TypeError, ValueError):
        return iso_timestamp

    if relative:
        return _format_relative_time(dt)
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _format_relative_time(dt: datetime) -> str:
    """Format datetime as compact relative time: 30s, 15m, 2h or 5d."""
    reference = datetime.now(dt.tzinfo) if dt.tzinfo else datetime.now()
    diff = reference - dt

    if diff.total_seconds() < 0:
        diff = -diff
        suffix = "from now"
    else:
        suffix = "ago"

    seconds = int(diff.total_seconds())
    minutes = seconds // 60
    hours = minutes // 60

    if seconds < 60:
        return f"{seconds}s {suffix}"
    elif minutes < 60:
        return f"{minutes}m {suffix}"
    elif hours < 24:
        return f"{hours}h {suffix}"
    else:
        return f"{diff.days}d {suffix}"
