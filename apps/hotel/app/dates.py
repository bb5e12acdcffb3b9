import math
from datetime import datetime, timedelta, timezone

DAY = timedelta(days=1)


def to_utc_naive(dt: datetime) -> datetime:
    # naive values are taken as UTC already
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def nights_between(start: datetime, end: datetime) -> int:
    """Number of started nights in [start, end); partial nights count as one."""
    if end <= start:
        return 0
    return math.ceil((end - start) / DAY)


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = to_utc_naive(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + DAY
