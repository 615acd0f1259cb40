"""Checks for committed meals that are due but not yet logged."""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from meal_adherence.domain.meals import MealSlot, parse_time_of_day
from meal_adherence.services.clock import Clock, local_now
from meal_adherence.services.commitments import CommitmentRepository
from meal_adherence.services.logs import MealLogService
from meal_adherence.services.user_settings import UserSettingsService


@dataclass
class NudgeService:
    """Finds meals needing logging and tracks when the user was nudged."""

    commitment_repository: CommitmentRepository
    log_service: MealLogService
    settings_service: UserSettingsService
    clock: Clock
    cooldown: timedelta = timedelta(hours=2)

    def get_meals_needing_logging_now(self, user_id: UUID) -> list[MealSlot]:
        """Return committed slots whose time has passed and are not logged."""
        commitment = self.commitment_repository.get_commitment(user_id)
        if commitment is None:
            return []
        now = local_now(self.clock, self.settings_service.get_timezone(user_id))
        todays_log = self.log_service.get_log(user_id, now.date())
        current = now.time().replace(second=0, microsecond=0)
        return [
            slot
            for slot in commitment.slots
            if slot in commitment.reminder_times
            and parse_time_of_day(commitment.reminder_times[slot]) <= current
            and slot not in todays_log.logged_slots
        ]

    def take_nudge(self, user_id: UUID) -> list[MealSlot]:
        """Return due meals and record a nudge, respecting the cooldown."""
        if not self.settings_service.should_nudge(user_id, self.cooldown):
            return []
        due = self.get_meals_needing_logging_now(user_id)
        if due:
            self.settings_service.record_nudge(user_id)
        return due
