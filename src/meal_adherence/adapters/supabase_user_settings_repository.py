"""Supabase repository for user settings."""

from dataclasses import dataclass
from datetime import UTC, datetime, time
from uuid import UUID

from supabase import Client

from meal_adherence.adapters.supabase_support import execute, parse_timestamp
from meal_adherence.domain.meals import parse_time_of_day
from meal_adherence.domain.models import UserSettings
from meal_adherence.domain.reminders import QuietHours, ReminderStyle
from meal_adherence.services.user_settings import UserSettingsRepository

_COLUMNS = (
    "user_id, timezone, quiet_hours_enabled, quiet_hours_start, quiet_hours_end, "
    "reminder_style, last_nudge_at"
)


@dataclass
class SupabaseUserSettingsRepository(UserSettingsRepository):
    """Supabase implementation for user settings."""

    client: Client

    def get_settings(self, user_id: UUID) -> UserSettings | None:
        """Return the stored settings for a user."""
        response = execute(
            self.client.table("user_settings")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .limit(1)
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserSettings(
            user_id=user_id,
            timezone=row.get("timezone") or "UTC",
            quiet_hours=QuietHours(
                enabled=bool(row.get("quiet_hours_enabled", True)),
                start=_parse_time(row.get("quiet_hours_start"), "22:00"),
                end=_parse_time(row.get("quiet_hours_end"), "07:00"),
            ),
            reminder_style=ReminderStyle(
                row.get("reminder_style") or ReminderStyle.GENTLE.value
            ),
            last_nudge_at=parse_timestamp(row.get("last_nudge_at")),
        )

    def save_settings(self, settings: UserSettings) -> None:
        """Insert or replace the settings row."""
        execute(
            self.client.table("user_settings").upsert(
                {
                    "user_id": str(settings.user_id),
                    "timezone": settings.timezone,
                    "quiet_hours_enabled": settings.quiet_hours.enabled,
                    "quiet_hours_start": _format_time(settings.quiet_hours.start),
                    "quiet_hours_end": _format_time(settings.quiet_hours.end),
                    "reminder_style": settings.reminder_style.value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id",
            )
        )

    def set_last_nudge(self, user_id: UUID, nudged_at: datetime) -> None:
        """Update the last nudge timestamp."""
        execute(
            self.client.table("user_settings").upsert(
                {"user_id": str(user_id), "last_nudge_at": nudged_at.isoformat()},
                on_conflict="user_id",
            )
        )


def _format_time(value: time) -> str:
    return value.strftime("%H:%M")


def _parse_time(raw: object, fallback: str) -> time:
    # Postgres time columns come back as HH:MM:SS.
    return parse_time_of_day(str(raw or fallback)[:5])
