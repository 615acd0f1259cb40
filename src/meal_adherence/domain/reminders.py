"""Domain models for scheduled reminders."""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import StrEnum
from uuid import UUID

from meal_adherence.domain.meals import MealSlot


class ReminderStatus(StrEnum):
    """Lifecycle states of a scheduled reminder."""

    PENDING = "pending"
    ARMED = "armed"
    FIRED = "fired"
    CANCELLED = "cancelled"


class Recurrence(StrEnum):
    NONE = "none"
    DAILY = "daily"


class ReminderStyle(StrEnum):
    """Tone of reminder copy."""

    GENTLE = "gentle"
    MOTIVATIONAL = "motivational"
    EDUCATIONAL = "educational"


@dataclass(frozen=True)
class NotificationPayload:
    """Content handed to the delivery collaborator."""

    title: str
    body: str
    tag: str
    data: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ScheduledReminder:
    """A single occurrence of a meal reminder."""

    id: UUID
    user_id: UUID
    meal_slot: MealSlot
    fire_at: datetime
    payload: NotificationPayload
    recurrence: Recurrence
    status: ReminderStatus
    active: bool
    created_at: datetime | None = None

    @property
    def is_live(self) -> bool:
        """True while the reminder may still deliver."""
        return self.active and self.status in {
            ReminderStatus.PENDING,
            ReminderStatus.ARMED,
        }


@dataclass(frozen=True)
class QuietHours:
    """Wall-clock window during which delivery is suppressed."""

    enabled: bool
    start: time
    end: time

    def contains(self, moment: time) -> bool:
        """Return True when the local time falls inside the window."""
        if not self.enabled:
            return False
        current = moment.replace(second=0, microsecond=0)
        if self.start > self.end:
            return current >= self.start or current <= self.end
        return self.start <= current <= self.end
