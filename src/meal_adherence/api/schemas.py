"""Pydantic models for API request bodies."""

from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    """Register a Telegram user."""

    telegram_user_id: int


class LogMealRequest(BaseModel):
    """Payload for logging a meal in a slot."""

    had_protein: bool = False
    had_vegetables: bool = False
    time_eaten: str | None = None
    meal_name: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=1000)


class SetCommitmentRequest(BaseModel):
    """Replace the user's committed slots."""

    slots: list[str]
    reminders_enabled: bool = True
    reminder_times: dict[str, str] = Field(default_factory=dict)


class ReminderSettingsRequest(BaseModel):
    enabled: bool
    times: dict[str, str] | None = None


class QuietHoursModel(BaseModel):
    enabled: bool = True
    start: str = "22:00"
    end: str = "07:00"


class UpdateSettingsRequest(BaseModel):
    """Partial update of user settings."""

    timezone: str | None = None
    quiet_hours: QuietHoursModel | None = None
    reminder_style: str | None = None
