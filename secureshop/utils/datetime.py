from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def get_current_time() -> datetime:
    """
    Get the current time in UTC.

    Returns a naive datetime, matching how timestamps are stored in the database.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def seconds_until(moment: datetime, now: datetime) -> int:
    """Whole seconds from ``now`` until ``moment``, never negative."""
    return max(0, int((moment - now).total_seconds()))
