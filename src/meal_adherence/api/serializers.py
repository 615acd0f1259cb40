"""JSON serialization of domain objects for API responses."""

from meal_adherence.domain.commitments import Commitment
from meal_adherence.domain.meals import SLOT_LABELS, DailyLog, LogEntry
from meal_adherence.domain.models import UserSettings
from meal_adherence.domain.reminders import ScheduledReminder
from meal_adherence.domain.stats import AdherenceStats, HabitStats, InsufficientData


def serialize_entry(entry: LogEntry) -> dict[str, object]:
    return {
        "meal_slot": entry.meal_slot.value,
        "label": SLOT_LABELS[entry.meal_slot],
        "time_eaten": entry.time_eaten,
        "had_protein": entry.had_protein,
        "had_vegetables": entry.had_vegetables,
        "meal_name": entry.meal_name,
        "notes": entry.notes,
        "logged_at": entry.logged_at.isoformat() if entry.logged_at else None,
    }


def serialize_log(log: DailyLog) -> dict[str, object]:
    return {
        "user_id": str(log.user_id),
        "date": log.day.isoformat(),
        "meals": [serialize_entry(entry) for entry in log.entries],
    }


def serialize_commitment(commitment: Commitment) -> dict[str, object]:
    return {
        "user_id": str(commitment.user_id),
        "slots": [slot.value for slot in commitment.slots],
        "reminder_times": {
            slot.value: value for slot, value in commitment.reminder_times.items()
        },
        "reminders_enabled": commitment.reminders_enabled,
        "onboarding_completed": commitment.onboarding_completed,
        "created_at": commitment.created_at.isoformat()
        if commitment.created_at
        else None,
        "updated_at": commitment.updated_at.isoformat()
        if commitment.updated_at
        else None,
    }


def serialize_adherence(
    result: AdherenceStats | InsufficientData,
) -> dict[str, object]:
    """Serialize statistics, keeping "unavailable" distinct from zero."""
    if isinstance(result, InsufficientData):
        return {"available": False, "reason": result.reason}
    comparison = result.week_comparison
    return {
        "available": True,
        "window_start": result.window_start.isoformat(),
        "window_end": result.window_end.isoformat(),
        "total_committed": result.total_committed,
        "total_logged": result.total_logged,
        "rate": result.rate,
        "current_streak": result.current_streak,
        "best_streak": result.best_streak,
        "by_slot": {
            slot.value: {
                "logged": stats.logged,
                "missed": stats.missed,
                "rate": stats.rate,
            }
            for slot, stats in result.by_slot.items()
        },
        "week_comparison": {
            "this_week_rate": comparison.this_week_rate,
            "last_week_rate": comparison.last_week_rate,
            "delta": comparison.delta,
        },
    }


def serialize_habits(stats: HabitStats) -> dict[str, object]:
    return {
        "total_meals_logged": stats.total_meals_logged,
        "protein_meals": stats.protein_meals,
        "vegetable_meals": stats.vegetable_meals,
        "protein_percentage": stats.protein_percentage,
        "vegetable_percentage": stats.vegetable_percentage,
        "meals_logged_today": stats.meals_logged_today,
        "logging_streak": stats.logging_streak,
        "slot_insights": [
            {
                "slot": insight.slot.value,
                "protein_frequency": insight.protein_frequency,
                "vegetable_frequency": insight.vegetable_frequency,
                "total_entries": insight.total_entries,
            }
            for insight in stats.slot_insights
        ],
    }


def serialize_settings(settings: UserSettings) -> dict[str, object]:
    return {
        "timezone": settings.timezone,
        "quiet_hours": {
            "enabled": settings.quiet_hours.enabled,
            "start": settings.quiet_hours.start.strftime("%H:%M"),
            "end": settings.quiet_hours.end.strftime("%H:%M"),
        },
        "reminder_style": settings.reminder_style.value,
    }


def serialize_reminder(reminder: ScheduledReminder) -> dict[str, object]:
    return {
        "id": str(reminder.id),
        "meal_slot": reminder.meal_slot.value,
        "fire_at": reminder.fire_at.isoformat(),
        "recurrence": reminder.recurrence.value,
        "status": reminder.status.value,
        "active": reminder.active,
        "title": reminder.payload.title,
    }
