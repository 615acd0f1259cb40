"""User settings service."""

from dataclasses import dataclass, field, replace
from datetime import datetime, time, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from meal_adherence.domain.errors import InvalidInput
from meal_adherence.domain.models import UserSettings
from meal_adherence.domain.reminders import QuietHours, ReminderStyle
from meal_adherence.services.clock import Clock


class UserSettingsRepository(Protocol):
    """Persistence interface for user settings."""

    def get_settings(self, user_id: UUID) -> UserSettings | None:
        """Return stored settings for the user, if any."""

    def save_settings(self, settings: UserSettings) -> None:
        """Insert or replace the user's settings."""

    def set_last_nudge(self, user_id: UUID, nudged_at: datetime) -> None:
        """Record when the user was last nudged to log a meal."""


class ScheduleRebuilder(Protocol):
    """Re-derives a user's reminders after settings change."""

    async def rebuild_schedule_for_user(self, user_id: UUID) -> object:
        """Cancel and re-create the user's live reminders."""


@dataclass
class UserSettingsService:
    """Service for user settings."""

    repository: UserSettingsRepository
    clock: Clock
    default_timezone: str = "UTC"
    default_quiet_hours: QuietHours = field(
        default_factory=lambda: QuietHours(
            enabled=True, start=time(22, 0), end=time(7, 0)
        )
    )
    default_reminder_style: ReminderStyle = ReminderStyle.GENTLE
    schedule_sync: ScheduleRebuilder | None = None

    def defaults_for(self, user_id: UUID) -> UserSettings:
        return UserSettings(
            user_id=user_id,
            timezone=self.default_timezone,
            quiet_hours=self.default_quiet_hours,
            reminder_style=self.default_reminder_style,
        )

    def get_settings(self, user_id: UUID) -> UserSettings:
        """Return the user's settings, falling back to defaults."""
        return self.repository.get_settings(user_id) or self.defaults_for(user_id)

    def get_timezone(self, user_id: UUID) -> str:
        return self.get_settings(user_id).timezone

    async def update_settings(
        self,
        user_id: UUID,
        timezone: str | None = None,
        quiet_hours: QuietHours | None = None,
        reminder_style: ReminderStyle | str | None = None,
    ) -> UserSettings:
        """Validate and persist settings. Reminders follow zone or style changes."""
        current = self.get_settings(user_id)
        updated = current
        if timezone is not None:
            updated = replace(updated, timezone=validate_timezone(timezone))
        if quiet_hours is not None:
            updated = replace(updated, quiet_hours=quiet_hours)
        if reminder_style is not None:
            try:
                style = ReminderStyle(reminder_style)
            except ValueError as exc:
                raise InvalidInput(
                    f"Unknown reminder style: {reminder_style!r}"
                ) from exc
            updated = replace(updated, reminder_style=style)
        self.repository.save_settings(updated)
        if self.schedule_sync is not None and (
            updated.timezone != current.timezone
            or updated.reminder_style != current.reminder_style
        ):
            await self.schedule_sync.rebuild_schedule_for_user(user_id)
        return updated

    def should_nudge(self, user_id: UUID, cooldown: timedelta) -> bool:
        """Return True when the last nudge is older than the cooldown."""
        last = self.get_settings(user_id).last_nudge_at
        return last is None or self.clock.now() - last >= cooldown

    def record_nudge(self, user_id: UUID) -> None:
        self.repository.set_last_nudge(user_id, self.clock.now())


def validate_timezone(timezone: str) -> str:
    """Return the timezone name if it is a known IANA zone."""
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidInput(f"Unknown timezone: {timezone!r}") from exc
    return timezone
