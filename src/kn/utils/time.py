from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parses a Kubernetes RFC 3339 timestamp like '2024-01-01T12:00:00Z'."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def short_human_duration(duration: timedelta) -> str:
    """Renders a duration the way kubectl prints ages: 5s, 3m, 7h, 25h10m, 4d, 2w, 1y."""
    seconds = int(duration.total_seconds())
    if seconds < 0:
        seconds = 0
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    if hours < 48:
        return f"{hours}h{minutes % 60}m"
    days = hours // 24
    if days < 14:
        return f"{days}d"
    if days < 365:
        return f"{days // 7}w"
    return f"{days // 365}y"


def age(timestamp: Union[str, datetime, None], now: Optional[datetime] = None) -> str:
    """Age of ``timestamp`` relative to ``now``; empty for a missing timestamp."""
    if isinstance(timestamp, str):
        timestamp = parse_timestamp(timestamp)
    if timestamp is None:
        return ""
    if now is None:
        now = datetime.now(timezone.utc)
    return short_human_duration(now - timestamp)
