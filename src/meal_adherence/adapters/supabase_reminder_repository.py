"""Supabase repository for scheduled reminders."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from meal_adherence.adapters.supabase_support import execute, parse_timestamp
from meal_adherence.domain.meals import MealSlot
from meal_adherence.domain.reminders import (
    NotificationPayload,
    Recurrence,
    ReminderStatus,
    ScheduledReminder,
)
from meal_adherence.services.reminders import ReminderRepository

_COLUMNS = (
    "id, user_id, meal_slot, fire_at, payload, recurrence, status, active, created_at"
)
_LIVE_STATUSES = [ReminderStatus.PENDING.value, ReminderStatus.ARMED.value]


@dataclass
class SupabaseReminderRepository(ReminderRepository):
    """Supabase implementation for reminder persistence."""

    client: Client

    def create_reminder(self, reminder: ScheduledReminder) -> ScheduledReminder:
        """Insert a reminder row."""
        response = execute(
            self.client.table("scheduled_reminders").insert(
                {
                    "id": str(reminder.id),
                    "user_id": str(reminder.user_id),
                    "meal_slot": reminder.meal_slot.value,
                    "fire_at": reminder.fire_at.isoformat(),
                    "payload": {
                        "title": reminder.payload.title,
                        "body": reminder.payload.body,
                        "tag": reminder.payload.tag,
                        "data": reminder.payload.data,
                    },
                    "recurrence": reminder.recurrence.value,
                    "status": reminder.status.value,
                    "active": reminder.active,
                    "created_at": reminder.created_at.isoformat()
                    if reminder.created_at
                    else None,
                }
            )
        )
        if not response.data:
            raise RuntimeError("Failed to create scheduled reminder")
        return _parse_row(response.data[0])

    def get_reminder(self, reminder_id: UUID) -> ScheduledReminder | None:
        """Return a reminder by id."""
        response = execute(
            self.client.table("scheduled_reminders")
            .select(_COLUMNS)
            .eq("id", str(reminder_id))
            .limit(1)
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def update_status(
        self, reminder_id: UUID, status: ReminderStatus, active: bool
    ) -> None:
        """Update status and active flag."""
        execute(
            self.client.table("scheduled_reminders")
            .update({"status": status.value, "active": active})
            .eq("id", str(reminder_id))
        )

    def list_live_reminders(self, user_id: UUID) -> list[ScheduledReminder]:
        """Return a user's live reminders ordered by fire time."""
        response = execute(
            self.client.table("scheduled_reminders")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("active", True)
            .in_("status", _LIVE_STATUSES)
            .order("fire_at", desc=False)
        )
        return [_parse_row(row) for row in response.data or []]

    def list_all_live_reminders(self) -> list[ScheduledReminder]:
        """Return all live reminders ordered by fire time."""
        response = execute(
            self.client.table("scheduled_reminders")
            .select(_COLUMNS)
            .eq("active", True)
            .in_("status", _LIVE_STATUSES)
            .order("fire_at", desc=False)
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> ScheduledReminder:
    payload = row.get("payload") or {}
    return ScheduledReminder(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        meal_slot=MealSlot(str(row["meal_slot"])),
        fire_at=datetime.fromisoformat(str(row["fire_at"])),
        payload=NotificationPayload(
            title=str(payload.get("title", "")),
            body=str(payload.get("body", "")),
            tag=str(payload.get("tag", "")),
            data=dict(payload.get("data") or {}),
        ),
        recurrence=Recurrence(str(row.get("recurrence", Recurrence.NONE.value))),
        status=ReminderStatus(str(row.get("status", ReminderStatus.PENDING.value))),
        active=bool(row.get("active", True)),
        created_at=parse_timestamp(row.get("created_at")),
    )
