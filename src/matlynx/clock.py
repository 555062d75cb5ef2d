"""UTC timestamps for record stamping."""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_stamp(clock: Clock, previous: datetime | None = None) -> datetime:
    """
    Current time from clock, forced strictly after previous.

    Record stamps such as updatedAt must increase on every mutation even
    when two mutations land within the clock's resolution.
    """
    now = clock()
    if previous is not None and now <= previous:
        return previous + _TICK
    return now
