"""Domain models for adherence statistics."""

from dataclasses import dataclass
from datetime import date

from meal_adherence.domain.meals import MealSlot


@dataclass(frozen=True)
class SlotAdherence:
    """Logged and missed counts for one committed slot."""

    slot: MealSlot
    logged: int
    missed: int

    @property
    def rate(self) -> float | None:
        total = self.logged + self.missed
        if total == 0:
            return None
        return self.logged / total * 100


@dataclass(frozen=True)
class WeekComparison:
    """Completion rate of the current calendar week against the previous one."""

    this_week_rate: float | None
    last_week_rate: float | None

    @property
    def delta(self) -> float | None:
        if self.this_week_rate is None or self.last_week_rate is None:
            return None
        return self.this_week_rate - self.last_week_rate


@dataclass(frozen=True)
class AdherenceStats:
    """Derived adherence figures for a window of days."""

    window_start: date
    window_end: date
    total_committed: int
    total_logged: int
    current_streak: int
    best_streak: int
    by_slot: dict[MealSlot, SlotAdherence]
    week_comparison: WeekComparison

    @property
    def rate(self) -> float | None:
        if self.total_committed == 0:
            return None
        return self.total_logged / self.total_committed * 100


@dataclass(frozen=True)
class InsufficientData:
    """Returned instead of statistics when there is nothing to measure."""

    reason: str


NO_COMMITMENT = "no_commitment"
NO_COMMITTED_SLOTS = "no_committed_slots"
NO_HISTORY = "no_history"


@dataclass(frozen=True)
class SlotInsight:
    """How often a slot includes protein and vegetables."""

    slot: MealSlot
    protein_frequency: float
    vegetable_frequency: float
    total_entries: int


@dataclass(frozen=True)
class HabitStats:
    """Protein and vegetable habits across logged meals."""

    total_meals_logged: int
    protein_meals: int
    vegetable_meals: int
    meals_logged_today: int
    logging_streak: int
    slot_insights: list[SlotInsight]

    @property
    def protein_percentage(self) -> float:
        if self.total_meals_logged == 0:
            return 0.0
        return self.protein_meals / self.total_meals_logged * 100

    @property
    def vegetable_percentage(self) -> float:
        if self.total_meals_logged == 0:
            return 0.0
        return self.vegetable_meals / self.total_meals_logged * 100
