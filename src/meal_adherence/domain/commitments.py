"""Domain models for meal commitments."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from meal_adherence.domain.meals import MealSlot


@dataclass(frozen=True)
class ReminderConfig:
    """Requested reminder settings for a commitment."""

    enabled: bool = True
    times: dict[MealSlot, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Commitment:
    """A user's committed meal slots and reminder times."""

    user_id: UUID
    slots: tuple[MealSlot, ...]
    reminder_times: dict[MealSlot, str]
    reminders_enabled: bool
    onboarding_completed: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def reminder_time(self, slot: MealSlot) -> str | None:
        return self.reminder_times.get(slot)


@dataclass(frozen=True)
class CommitmentDiff:
    """Slots whose reminders must change between two commitments."""

    added: frozenset[MealSlot]
    removed: frozenset[MealSlot]
    retimed: frozenset[MealSlot]

    @property
    def to_cancel(self) -> frozenset[MealSlot]:
        return self.removed | self.retimed

    @property
    def to_arm(self) -> frozenset[MealSlot]:
        return self.added | self.retimed


def armed_slots(commitment: Commitment | None) -> dict[MealSlot, str]:
    """Return slot reminder times that should have live reminders."""
    if commitment is None or not commitment.reminders_enabled:
        return {}
    return {
        slot: commitment.reminder_times[slot]
        for slot in commitment.slots
        if slot in commitment.reminder_times
    }


def diff_commitments(
    previous: Commitment | None, current: Commitment | None
) -> CommitmentDiff:
    """Compare the reminder-bearing slots of two commitments."""
    before = armed_slots(previous)
    after = armed_slots(current)
    added = frozenset(after) - frozenset(before)
    removed = frozenset(before) - frozenset(after)
    retimed = frozenset(
        slot
        for slot in frozenset(before) & frozenset(after)
        if before[slot] != after[slot]
    )
    return CommitmentDiff(added=added, removed=removed, retimed=retimed)
