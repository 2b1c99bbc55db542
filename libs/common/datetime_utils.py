"""UTC time helpers for model timestamps and token expiry.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Timezone-aware current time in UTC. Never use naive datetimes."""
    return datetime.now(timezone.utc)


def unix_after(delta: timedelta) -> int:
    """Unix timestamp ``delta`` from now, as carried in a JWT ``exp`` claim."""
    return int((utc_now() + delta).timestamp())
