"""Age, freshness and display-time helpers."""

from datetime import UTC, datetime


_SECONDS_PER_DAY = 86400.0


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def age_days(published_at: datetime, now: datetime) -> float:
    """Age in fractional days. Future timestamps count as age 0."""
    delta = ensure_utc(now) - ensure_utc(published_at)
    return max(0.0, delta.total_seconds() / _SECONDS_PER_DAY)


def freshness(published_at: datetime, now: datetime, decay_days: float) -> float:
    """Linear freshness in [0, 1].

    A story published at ``now`` has freshness 1; one that is
    ``decay_days`` or older has freshness 0.

    Args:
        published_at: Publication time.
        now: Reference time.
        decay_days: Age at which freshness reaches zero.

    Returns:
        Freshness value.
    """
    value = 1.0 - age_days(published_at, now) / decay_days
    return max(0.0, min(1.0, value))


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''} ago"


def relative_time(published_at: datetime, now: datetime) -> str:
    """Human-readable age such as ``"3 hours ago"``.

    Uses whole days when at least one day old, else whole hours, else
    minutes with a minimum of one.
    """
    seconds = (ensure_utc(now) - ensure_utc(published_at)).total_seconds()
    seconds = max(0.0, seconds)

    days = int(seconds // _SECONDS_PER_DAY)
    if days > 0:
        return _plural(days, "day")

    hours = int(seconds // 3600)
    if hours > 0:
        return _plural(hours, "hour")

    minutes = max(1, int(seconds // 60))
    return _plural(minutes, "minute")
