"""Adherence analytics over committed meal slots."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from uuid import UUID

from meal_adherence.domain.commitments import Commitment
from meal_adherence.domain.meals import DailyLog, MealSlot
from meal_adherence.domain.stats import (
    NO_COMMITMENT,
    NO_COMMITTED_SLOTS,
    NO_HISTORY,
    AdherenceStats,
    HabitStats,
    InsufficientData,
    SlotAdherence,
    SlotInsight,
    WeekComparison,
)
from meal_adherence.services.clock import Clock, local_now
from meal_adherence.services.commitments import CommitmentRepository
from meal_adherence.services.logs import MealLogService
from meal_adherence.services.user_settings import UserSettingsService

DAYS_PER_WEEK = 7


def compute_adherence(
    commitment: Commitment | None,
    history: list[DailyLog],
    now: datetime,
    window_days: int = 30,
) -> AdherenceStats | InsufficientData:
    """Compute adherence statistics for the window ending on ``now``'s date.

    ``now`` must be in the user's local timezone. Days before the commitment
    was created are outside the window. Recorded days feed the rates; for
    streaks a day without a record counts as fully missed.
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")
    if commitment is None:
        return InsufficientData(NO_COMMITMENT)
    slots = tuple(dict.fromkeys(commitment.slots))
    if not slots:
        return InsufficientData(NO_COMMITTED_SLOTS)

    today = now.date()
    window_start = today - timedelta(days=window_days - 1)
    if commitment.created_at is not None:
        committed_on = commitment.created_at.astimezone(now.tzinfo).date()
        window_start = max(window_start, committed_on)
    by_day = {log.day: log for log in history if window_start <= log.day <= today}
    if not by_day:
        return InsufficientData(NO_HISTORY)

    logged_counts = dict.fromkeys(slots, 0)
    for log in by_day.values():
        for slot in slots:
            if slot in log.logged_slots:
                logged_counts[slot] += 1
    recorded_days = len(by_day)
    by_slot = {
        slot: SlotAdherence(
            slot=slot,
            logged=logged_counts[slot],
            missed=recorded_days - logged_counts[slot],
        )
        for slot in slots
    }

    def satisfied(day: date) -> bool:
        log = by_day.get(day)
        return log is not None and all(slot in log.logged_slots for slot in slots)

    current_streak = 0
    day = today
    while day >= window_start and satisfied(day):
        current_streak += 1
        day -= timedelta(days=1)

    best_streak = 0
    run = 0
    day = window_start
    while day <= today:
        run = run + 1 if satisfied(day) else 0
        best_streak = max(best_streak, run)
        day += timedelta(days=1)

    week_start = today - timedelta(days=(today.weekday() + 1) % DAYS_PER_WEEK)
    last_week_start = week_start - timedelta(days=DAYS_PER_WEEK)
    comparison = WeekComparison(
        this_week_rate=_period_rate(by_day, slots, week_start, today),
        last_week_rate=_period_rate(
            by_day, slots, last_week_start, week_start - timedelta(days=1)
        ),
    )

    return AdherenceStats(
        window_start=window_start,
        window_end=today,
        total_committed=recorded_days * len(slots),
        total_logged=sum(logged_counts.values()),
        current_streak=current_streak,
        best_streak=best_streak,
        by_slot=by_slot,
        week_comparison=comparison,
    )


def compute_habit_stats(history: list[DailyLog], today: date) -> HabitStats:
    """Summarise protein and vegetable habits across every logged meal."""
    by_day = {log.day: log for log in history}
    total = protein = vegetables = 0
    per_slot: dict[MealSlot, list[int]] = {}
    for log in by_day.values():
        for entry in log.entries:
            total += 1
            counts = per_slot.setdefault(entry.meal_slot, [0, 0, 0])
            counts[0] += 1
            if entry.had_protein:
                protein += 1
                counts[1] += 1
            if entry.had_vegetables:
                vegetables += 1
                counts[2] += 1

    streak = 0
    day = today
    while day in by_day and by_day[day].entries:
        streak += 1
        day -= timedelta(days=1)

    insights = [
        SlotInsight(
            slot=slot,
            protein_frequency=counts[1] / counts[0] * 100,
            vegetable_frequency=counts[2] / counts[0] * 100,
            total_entries=counts[0],
        )
        for slot, counts in per_slot.items()
    ]
    insights.sort(key=lambda insight: insight.total_entries, reverse=True)
    todays_log = by_day.get(today)
    return HabitStats(
        total_meals_logged=total,
        protein_meals=protein,
        vegetable_meals=vegetables,
        meals_logged_today=len(todays_log.entries) if todays_log else 0,
        logging_streak=streak,
        slot_insights=insights,
    )


def _period_rate(
    by_day: dict[date, DailyLog],
    slots: tuple[MealSlot, ...],
    start: date,
    end: date,
) -> float | None:
    committed = logged = 0
    for day, log in by_day.items():
        if start <= day <= end:
            committed += len(slots)
            logged += sum(1 for slot in slots if slot in log.logged_slots)
    if committed == 0:
        return None
    return logged / committed * 100


@dataclass
class AdherenceService:
    """Fetches the inputs for adherence analytics and runs them."""

    commitment_repository: CommitmentRepository
    log_service: MealLogService
    settings_service: UserSettingsService
    clock: Clock
    window_days: int = 30

    def get_adherence_stats(
        self, user_id: UUID, days: int | None = None
    ) -> AdherenceStats | InsufficientData:
        """Return adherence statistics or the reason they are unavailable."""
        window = self.window_days if days is None else days
        commitment = self.commitment_repository.get_commitment(user_id)
        if commitment is None:
            return InsufficientData(NO_COMMITMENT)
        now = local_now(self.clock, self.settings_service.get_timezone(user_id))
        since = now.date() - timedelta(days=max(window, 1) - 1)
        history = self.log_service.get_history(user_id, since)
        return compute_adherence(commitment, history, now, window)

    def get_habit_stats(self, user_id: UUID, days: int | None = None) -> HabitStats:
        window = self.window_days if days is None else days
        now = local_now(self.clock, self.settings_service.get_timezone(user_id))
        since = now.date() - timedelta(days=max(window, 1) - 1)
        history = self.log_service.get_history(user_id, since)
        return compute_habit_stats(history, now.date())
