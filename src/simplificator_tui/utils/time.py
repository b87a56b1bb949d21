from __future__ import annotations

from datetime import datetime, timezone


def relative_time(created_at: str, now: datetime | None = None) -> str:
    """Format an ISO-8601 timestamp relative to now: 'just now', '5m ago', '3h ago', '2d ago'."""
    try:
        then = datetime.fromisoformat(created_at)
    except (TypeError, ValueError):
        return "unknown"
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)

    delta_seconds = (current - then).total_seconds()

    # Future times and the last minute
    if delta_seconds < 60:
        return "just now"

    if delta_seconds < 3600:
        minutes = int(delta_seconds // 60)
        return f"{minutes}m ago"

    if delta_seconds < 86400:
        hours = int(delta_seconds // 3600)
        return f"{hours}h ago"

    days = int(delta_seconds // 86400)
    return f"{days}d ago"
