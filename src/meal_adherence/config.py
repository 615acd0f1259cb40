"""Application configuration."""

import os
from datetime import timedelta

from pydantic_settings import BaseSettings, SettingsConfigDict

from meal_adherence.domain.meals import parse_time_of_day
from meal_adherence.domain.reminders import QuietHours, ReminderStyle

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    telegram_bot_token: str
    default_timezone: str = "UTC"
    adherence_window_days: int = 30
    history_cache_ttl_seconds: int = 86400
    quiet_hours_enabled: bool = True
    quiet_hours_start: str = "22:00"
    quiet_hours_end: str = "07:00"
    reminder_style: ReminderStyle = ReminderStyle.GENTLE
    nudge_cooldown_minutes: int = 120
    scheduler_enabled: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def default_quiet_hours(self) -> QuietHours:
        """Quiet hours applied to users who have not configured their own."""
        return QuietHours(
            enabled=self.quiet_hours_enabled,
            start=parse_time_of_day(self.quiet_hours_start),
            end=parse_time_of_day(self.quiet_hours_end),
        )

    @property
    def nudge_cooldown(self) -> timedelta:
        return timedelta(minutes=self.nudge_cooldown_minutes)
