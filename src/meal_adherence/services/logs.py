"""Daily meal log service."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from meal_adherence.domain.errors import StorageUnavailable
from meal_adherence.domain.meals import (
    DailyLog,
    LogEntry,
    MealSlot,
    parse_slot,
    parse_time_of_day,
)
from meal_adherence.services.cache import Cache
from meal_adherence.services.clock import Clock, local_today
from meal_adherence.services.user_settings import UserSettingsService

logger = logging.getLogger(__name__)


class LogRepository(Protocol):
    """Persistence interface for daily meal logs."""

    def ensure_log(self, user_id: UUID, day: date) -> DailyLog:
        """Create the day's log if it is absent and return it."""

    def upsert_entry(self, user_id: UUID, day: date, entry: LogEntry) -> None:
        """Insert or replace the entry for the entry's slot."""

    def remove_entry(self, user_id: UUID, day: date, slot: MealSlot) -> None:
        """Delete the entry for a slot if present."""

    def list_logs(self, user_id: UUID, since: date) -> list[DailyLog]:
        """Return logs dated on or after ``since``, newest first."""


@dataclass
class MealLogService:
    """Reads and writes per-day meal logs."""

    repository: LogRepository
    settings_service: UserSettingsService
    clock: Clock
    cache: Cache
    cache_ttl_seconds: int = 86400

    def today(self, user_id: UUID) -> date:
        """Return the current calendar date in the user's timezone."""
        return local_today(self.clock, self.settings_service.get_timezone(user_id))

    def get_log(self, user_id: UUID, day: date) -> DailyLog:
        """Return the log for a day, creating an empty one if needed."""
        key = f"log:{user_id}:{day.isoformat()}"
        try:
            log = self.repository.ensure_log(user_id, day)
        except StorageUnavailable:
            cached = self.cache.get(key)
            if isinstance(cached, DailyLog):
                logger.warning("Serving cached log for %s on %s", user_id, day)
                return cached
            raise
        self.cache.set(key, log, self.cache_ttl_seconds)
        return log

    def get_todays_log(self, user_id: UUID) -> DailyLog:
        return self.get_log(user_id, self.today(user_id))

    def log_meal(  # noqa: PLR0913
        self,
        user_id: UUID,
        meal_slot: MealSlot | str,
        had_protein: bool,
        had_vegetables: bool,
        time_eaten: str | None = None,
        meal_name: str | None = None,
        notes: str | None = None,
        day: date | None = None,
    ) -> DailyLog:
        """Record a meal, replacing any earlier entry for the same slot."""
        slot = parse_slot(meal_slot)
        if time_eaten:
            parse_time_of_day(time_eaten)
        entry = LogEntry(
            meal_slot=slot,
            had_protein=had_protein,
            had_vegetables=had_vegetables,
            time_eaten=time_eaten or None,
            meal_name=meal_name or None,
            notes=notes or None,
            logged_at=self.clock.now(),
        )
        target_day = day or self.today(user_id)
        self.repository.ensure_log(user_id, target_day)
        self.repository.upsert_entry(user_id, target_day, entry)
        logger.info("Logged %s for %s on %s", slot, user_id, target_day)
        return self.get_log(user_id, target_day)

    def clear_meal_entry(
        self, user_id: UUID, meal_slot: MealSlot | str, day: date | None = None
    ) -> DailyLog:
        """Remove the entry for a slot. Missing entries are ignored."""
        slot = parse_slot(meal_slot)
        target_day = day or self.today(user_id)
        self.repository.remove_entry(user_id, target_day, slot)
        return self.get_log(user_id, target_day)

    def get_history(self, user_id: UUID, since: date) -> list[DailyLog]:
        """Return logs since a date, newest first."""
        key = f"history:{user_id}:{since.isoformat()}"
        try:
            logs = self.repository.list_logs(user_id, since)
        except StorageUnavailable:
            cached = self.cache.get(key)
            if isinstance(cached, list):
                logger.warning("Serving cached history for %s", user_id)
                return cached
            raise
        ordered = sorted(logs, key=lambda log: log.day, reverse=True)
        self.cache.set(key, ordered, self.cache_ttl_seconds)
        return ordered

    def get_recent_history(self, user_id: UUID, days: int = 7) -> list[DailyLog]:
        """Return the last ``days`` calendar days of logs, newest first."""
        since = self.today(user_id) - timedelta(days=max(days, 1) - 1)
        return self.get_history(user_id, since)
