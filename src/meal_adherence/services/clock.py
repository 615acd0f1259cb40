"""Time sources."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""


@dataclass
class SystemClock(Clock):
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(tz=UTC)


def local_now(clock: Clock, timezone_name: str) -> datetime:
    """Return the clock's current time in the given timezone."""
    return clock.now().astimezone(ZoneInfo(timezone_name))


def local_today(clock: Clock, timezone_name: str) -> date:
    return local_now(clock, timezone_name).date()


def next_occurrence(
    time_of_day: time, after: datetime, timezone_name: str
) -> datetime:
    """Return the first local ``time_of_day`` strictly after ``after``, in UTC."""
    tz = ZoneInfo(timezone_name)
    local_after = after.astimezone(tz)
    candidate = datetime.combine(local_after.date(), time_of_day, tzinfo=tz)
    if candidate <= local_after:
        candidate = datetime.combine(
            local_after.date() + timedelta(days=1), time_of_day, tzinfo=tz
        )
    return candidate.astimezone(UTC)
