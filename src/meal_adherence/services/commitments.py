"""Meal commitment service."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from meal_adherence.domain.commitments import Commitment, ReminderConfig
from meal_adherence.domain.errors import InvalidInput, StorageUnavailable
from meal_adherence.domain.meals import (
    DEFAULT_REMINDER_TIMES,
    FALLBACK_REMINDER_TIME,
    MealSlot,
    parse_slot,
    parse_time_of_day,
)
from meal_adherence.services.clock import Clock

logger = logging.getLogger(__name__)


class CommitmentRepository(Protocol):
    """Persistence interface for meal commitments."""

    def get_commitment(self, user_id: UUID) -> Commitment | None:
        """Return the user's commitment, if any."""

    def save_commitment(self, commitment: Commitment) -> Commitment:
        """Insert or replace the user's commitment and return it."""


class ScheduleSync(Protocol):
    """Receives commitment changes so reminders can follow them."""

    async def apply_commitment_change(
        self,
        user_id: UUID,
        previous: Commitment | None,
        current: Commitment | None,
    ) -> None:
        """Bring the user's reminders in line with the new commitment."""


@dataclass
class CommitmentService:
    """Stores commitments and keeps reminders in step with them."""

    repository: CommitmentRepository
    clock: Clock
    schedule_sync: ScheduleSync | None = None
    _locks: dict[UUID, asyncio.Lock] = field(default_factory=dict, init=False)

    def get_commitment(self, user_id: UUID) -> Commitment | None:
        return self.repository.get_commitment(user_id)

    def should_onboard(self, user_id: UUID) -> bool:
        """Return True when the user has not finished commitment onboarding."""
        commitment = self.repository.get_commitment(user_id)
        return commitment is None or not commitment.onboarding_completed

    async def set_commitment(
        self,
        user_id: UUID,
        slots: Iterable[MealSlot | str],
        reminder_config: ReminderConfig | None = None,
    ) -> Commitment:
        """Replace the user's committed slots and reminder times."""
        config = reminder_config or ReminderConfig()
        committed = _validate_slots(slots)
        times = {
            slot: _reminder_time_for(slot, config.times.get(slot))
            for slot in committed
        }
        async with self._lock_for(user_id):
            previous = self.repository.get_commitment(user_id)
            now = self.clock.now()
            candidate = Commitment(
                user_id=user_id,
                slots=committed,
                reminder_times=times,
                reminders_enabled=config.enabled,
                onboarding_completed=True,
                created_at=previous.created_at if previous else now,
                updated_at=now,
            )
            saved = await self._save_and_sync(user_id, previous, candidate)
            logger.info(
                "Saved commitment for %s: %s",
                user_id,
                ", ".join(slot.value for slot in committed),
            )
        return saved

    async def update_reminder_settings(
        self,
        user_id: UUID,
        enabled: bool,
        times: dict[MealSlot, str] | None = None,
    ) -> Commitment:
        """Toggle reminders or change reminder times for committed slots."""
        async with self._lock_for(user_id):
            previous = self.repository.get_commitment(user_id)
            if previous is None:
                raise InvalidInput("No commitment found")
            reminder_times = dict(previous.reminder_times)
            for slot, value in (times or {}).items():
                if slot in previous.slots:
                    reminder_times[slot] = _reminder_time_for(slot, value)
            candidate = Commitment(
                user_id=user_id,
                slots=previous.slots,
                reminder_times=reminder_times,
                reminders_enabled=enabled,
                onboarding_completed=previous.onboarding_completed,
                created_at=previous.created_at,
                updated_at=self.clock.now(),
            )
            return await self._save_and_sync(user_id, previous, candidate)

    def _lock_for(self, user_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def _save_and_sync(
        self, user_id: UUID, previous: Commitment | None, candidate: Commitment
    ) -> Commitment:
        """Move reminders to the candidate, then store it. Undo on failure."""
        try:
            await self._sync(user_id, previous, candidate)
            return self.repository.save_commitment(candidate)
        except StorageUnavailable:
            await self._restore_schedule(user_id, candidate, previous)
            raise

    async def _restore_schedule(
        self, user_id: UUID, candidate: Commitment, previous: Commitment | None
    ) -> None:
        try:
            await self._sync(user_id, candidate, previous)
        except StorageUnavailable:
            logger.exception("Could not restore reminders for %s", user_id)

    async def _sync(
        self,
        user_id: UUID,
        previous: Commitment | None,
        current: Commitment | None,
    ) -> None:
        if self.schedule_sync is None:
            return
        await self.schedule_sync.apply_commitment_change(user_id, previous, current)


def _validate_slots(slots: Iterable[MealSlot | str]) -> tuple[MealSlot, ...]:
    parsed = tuple(dict.fromkeys(parse_slot(slot) for slot in slots))
    if not parsed:
        raise InvalidInput("At least one meal slot must be committed")
    return parsed


def _reminder_time_for(slot: MealSlot, requested: str | None) -> str:
    if requested:
        parse_time_of_day(requested)
        return requested
    return DEFAULT_REMINDER_TIMES.get(slot, FALLBACK_REMINDER_TIME)
