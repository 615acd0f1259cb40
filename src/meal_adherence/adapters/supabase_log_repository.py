"""Supabase repository for daily meal logs."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from meal_adherence.adapters.supabase_support import execute, parse_timestamp
from meal_adherence.domain.meals import DailyLog, LogEntry, MealSlot
from meal_adherence.services.logs import LogRepository

_ENTRY_COLUMNS = (
    "date, meal_slot, time_eaten, had_protein, had_vegetables, meal_name, notes, "
    "logged_at"
)


@dataclass
class SupabaseLogRepository(LogRepository):
    """Supabase implementation for daily logs and their entries."""

    client: Client

    def ensure_log(self, user_id: UUID, day: date) -> DailyLog:
        """Insert the day row unless it exists, then return the log."""
        execute(
            self.client.table("daily_logs").upsert(
                {"user_id": str(user_id), "date": day.isoformat()},
                on_conflict="user_id,date",
                ignore_duplicates=True,
            )
        )
        response = execute(
            self.client.table("meal_log_entries")
            .select(_ENTRY_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
        )
        entries = tuple(_parse_entry(row) for row in response.data or [])
        return DailyLog(user_id=user_id, day=day, entries=entries)

    def upsert_entry(self, user_id: UUID, day: date, entry: LogEntry) -> None:
        """Insert or replace the entry keyed by user, date and slot."""
        execute(
            self.client.table("meal_log_entries").upsert(
                {
                    "user_id": str(user_id),
                    "date": day.isoformat(),
                    "meal_slot": entry.meal_slot.value,
                    "time_eaten": entry.time_eaten,
                    "had_protein": entry.had_protein,
                    "had_vegetables": entry.had_vegetables,
                    "meal_name": entry.meal_name,
                    "notes": entry.notes,
                    "logged_at": entry.logged_at.isoformat()
                    if entry.logged_at
                    else None,
                },
                on_conflict="user_id,date,meal_slot",
            )
        )

    def remove_entry(self, user_id: UUID, day: date, slot: MealSlot) -> None:
        """Delete the entry for a slot."""
        execute(
            self.client.table("meal_log_entries")
            .delete()
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .eq("meal_slot", slot.value)
        )

    def list_logs(self, user_id: UUID, since: date) -> list[DailyLog]:
        """Return logs on or after a date, newest first."""
        days_response = execute(
            self.client.table("daily_logs")
            .select("date")
            .eq("user_id", str(user_id))
            .gte("date", since.isoformat())
            .order("date", desc=True)
        )
        entries_response = execute(
            self.client.table("meal_log_entries")
            .select(_ENTRY_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("date", since.isoformat())
        )
        grouped: dict[date, list[LogEntry]] = {
            date.fromisoformat(str(row["date"])): []
            for row in days_response.data or []
        }
        for row in entries_response.data or []:
            day = date.fromisoformat(str(row["date"]))
            grouped.setdefault(day, []).append(_parse_entry(row))
        return [
            DailyLog(user_id=user_id, day=day, entries=tuple(grouped[day]))
            for day in sorted(grouped, reverse=True)
        ]


def _parse_entry(row: dict[str, object]) -> LogEntry:
    return LogEntry(
        meal_slot=MealSlot(str(row["meal_slot"])),
        had_protein=bool(row.get("had_protein", False)),
        had_vegetables=bool(row.get("had_vegetables", False)),
        time_eaten=row.get("time_eaten") or None,
        meal_name=row.get("meal_name") or None,
        notes=row.get("notes") or None,
        logged_at=parse_timestamp(row.get("logged_at")),
    )
