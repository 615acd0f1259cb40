"""Domain models for users and their settings."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from meal_adherence.domain.reminders import QuietHours, ReminderStyle


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    telegram_user_id: int


@dataclass(frozen=True)
class UserSettings:
    """Per-user preferences and state that outlive a single request."""

    user_id: UUID
    timezone: str
    quiet_hours: QuietHours
    reminder_style: ReminderStyle
    last_nudge_at: datetime | None = None
