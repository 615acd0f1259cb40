"""Domain models for daily meal logs."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import StrEnum
from uuid import UUID

from meal_adherence.domain.errors import InvalidInput

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class MealSlot(StrEnum):
    """Named eating occasions in a day."""

    BREAKFAST = "breakfast"
    MID_MORNING = "mid-morning"
    LUNCH = "lunch"
    AFTERNOON = "afternoon"
    DINNER = "dinner"
    EVENING = "evening"


DEFAULT_REMINDER_TIMES: dict[MealSlot, str] = {
    MealSlot.BREAKFAST: "08:00",
    MealSlot.MID_MORNING: "10:30",
    MealSlot.LUNCH: "13:00",
    MealSlot.AFTERNOON: "15:30",
    MealSlot.DINNER: "19:00",
    MealSlot.EVENING: "21:00",
}
FALLBACK_REMINDER_TIME = "12:00"

SLOT_LABELS: dict[MealSlot, str] = {
    MealSlot.BREAKFAST: "Breakfast",
    MealSlot.MID_MORNING: "Mid-Morning Snack",
    MealSlot.LUNCH: "Lunch",
    MealSlot.AFTERNOON: "Afternoon Snack",
    MealSlot.DINNER: "Dinner",
    MealSlot.EVENING: "Evening Snack",
}


def parse_slot(value: str) -> MealSlot:
    """Return the meal slot for a raw value or raise InvalidInput."""
    try:
        return MealSlot(value)
    except ValueError as exc:
        raise InvalidInput(f"Unknown meal slot: {value!r}") from exc


def parse_time_of_day(value: str) -> time:
    """Parse a 24h HH:MM string."""
    match = _HHMM.match(value or "")
    if match is None:
        raise InvalidInput(f"Expected HH:MM time of day, got {value!r}")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


@dataclass(frozen=True)
class LogEntry:
    """A single logged meal occasion."""

    meal_slot: MealSlot
    had_protein: bool
    had_vegetables: bool
    time_eaten: str | None = None
    meal_name: str | None = None
    notes: str | None = None
    logged_at: datetime | None = None


@dataclass(frozen=True)
class DailyLog:
    """All meal entries for one user on one calendar date."""

    user_id: UUID
    day: date
    entries: tuple[LogEntry, ...] = field(default_factory=tuple)

    def entry_for(self, slot: MealSlot) -> LogEntry | None:
        """Return the entry for a slot, if logged."""
        for entry in self.entries:
            if entry.meal_slot == slot:
                return entry
        return None

    @property
    def logged_slots(self) -> frozenset[MealSlot]:
        return frozenset(entry.meal_slot for entry in self.entries)
