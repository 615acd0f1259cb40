"""Reminder scheduling for committed meal slots."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from meal_adherence.domain.commitments import (
    Commitment,
    armed_slots,
    diff_commitments,
)
from meal_adherence.domain.errors import StorageUnavailable
from meal_adherence.domain.meals import MealSlot, parse_time_of_day
from meal_adherence.domain.models import UserSettings
from meal_adherence.domain.reminders import (
    NotificationPayload,
    Recurrence,
    ReminderStatus,
    ScheduledReminder,
)
from meal_adherence.services.clock import Clock, next_occurrence
from meal_adherence.services.commitments import CommitmentRepository
from meal_adherence.services.notifications import build_reminder_payload
from meal_adherence.services.timers import TimerQueue
from meal_adherence.services.user_settings import UserSettingsService

logger = logging.getLogger(__name__)


class ReminderRepository(Protocol):
    """Persistence interface for scheduled reminders."""

    def create_reminder(self, reminder: ScheduledReminder) -> ScheduledReminder:
        """Persist a new reminder and return it."""

    def get_reminder(self, reminder_id: UUID) -> ScheduledReminder | None:
        """Return a reminder by id."""

    def update_status(
        self, reminder_id: UUID, status: ReminderStatus, active: bool
    ) -> None:
        """Update a reminder's lifecycle state."""

    def list_live_reminders(self, user_id: UUID) -> list[ScheduledReminder]:
        """Return the user's active pending or armed reminders."""

    def list_all_live_reminders(self) -> list[ScheduledReminder]:
        """Return every active pending or armed reminder."""


class ReminderSender(Protocol):
    """Delivery collaborator for reminder payloads."""

    async def deliver(self, payload: NotificationPayload) -> None:
        """Deliver a payload. No confirmation is expected."""


@dataclass
class ReminderScheduler:
    """Derives, arms, fires and cancels meal reminders."""

    repository: ReminderRepository
    commitment_repository: CommitmentRepository
    settings_service: UserSettingsService
    sender: ReminderSender
    clock: Clock
    timers: TimerQueue = field(init=False)

    def __post_init__(self) -> None:
        self.timers = TimerQueue(clock=self.clock, callback=self.fire)

    async def start(self) -> None:
        """Re-arm persisted reminders and start the wake loop."""
        try:
            restored = self.restore()
        except StorageUnavailable:
            logger.exception("Could not restore reminders from storage")
        else:
            logger.info("Restored %d reminders", restored)
        self.timers.start()

    async def stop(self) -> None:
        await self.timers.stop()

    def restore(self) -> int:
        """Arm every live reminder found in storage."""
        reminders = self.repository.list_all_live_reminders()
        for reminder in reminders:
            self.arm(reminder)
        return len(reminders)

    async def rebuild_schedule_for_user(
        self, user_id: UUID
    ) -> list[ScheduledReminder]:
        """Cancel all of the user's live reminders and derive them afresh."""
        for reminder in self.repository.list_live_reminders(user_id):
            self.cancel(reminder.id)
        commitment = self.commitment_repository.get_commitment(user_id)
        settings = self.settings_service.get_settings(user_id)
        created = [
            self._schedule_slot(user_id, slot, reminder_time, settings)
            for slot, reminder_time in armed_slots(commitment).items()
        ]
        logger.info("Rebuilt %d reminders for %s", len(created), user_id)
        return created

    async def apply_commitment_change(
        self,
        user_id: UUID,
        previous: Commitment | None,
        current: Commitment | None,
    ) -> None:
        """Cancel reminders for dropped or retimed slots, arm new ones."""
        desired = armed_slots(current)
        diff = diff_commitments(previous, current)
        kept: set[MealSlot] = set()
        stale: list[ScheduledReminder] = []
        for reminder in self.repository.list_live_reminders(user_id):
            slot = reminder.meal_slot
            if slot in diff.to_cancel or slot not in desired or slot in kept:
                stale.append(reminder)
            else:
                kept.add(slot)
        settings = self.settings_service.get_settings(user_id)
        armed = 0
        # Arm first: a failed create must leave the old reminders live.
        for slot, reminder_time in desired.items():
            if slot not in kept:
                self._schedule_slot(user_id, slot, reminder_time, settings)
                armed += 1
        for reminder in stale:
            self.cancel(reminder.id)
        logger.info(
            "Reminders for %s: %d cancelled, %d armed", user_id, len(stale), armed
        )

    def list_live_reminders(self, user_id: UUID) -> list[ScheduledReminder]:
        return self.repository.list_live_reminders(user_id)

    def arm(self, reminder: ScheduledReminder) -> None:
        """Queue a reminder to fire at its target time."""
        if reminder.status != ReminderStatus.ARMED:
            self.repository.update_status(reminder.id, ReminderStatus.ARMED, True)
        self.timers.schedule(reminder.id, reminder.fire_at)

    def cancel(self, reminder_id: UUID) -> None:
        """Deactivate a reminder. A timer already in flight will discard it."""
        self.repository.update_status(reminder_id, ReminderStatus.CANCELLED, False)
        self.timers.discard(reminder_id)

    async def fire(self, reminder_id: UUID) -> None:
        """Deliver a due reminder and schedule its next occurrence."""
        reminder = self.repository.get_reminder(reminder_id)
        if reminder is None or not reminder.is_live:
            logger.debug("Discarding timer for inactive reminder %s", reminder_id)
            return
        now = self.clock.now()
        settings = self.settings_service.get_settings(reminder.user_id)
        local_time = now.astimezone(ZoneInfo(settings.timezone)).time()
        if settings.quiet_hours.contains(local_time):
            logger.info("Suppressed reminder %s during quiet hours", reminder.id)
        else:
            try:
                await self.sender.deliver(reminder.payload)
            except Exception:
                logger.exception("Failed to deliver reminder %s", reminder.id)
            # Delivery yields to other tasks; a cancellation meanwhile wins.
            current = self.repository.get_reminder(reminder.id)
            if current is None or not current.is_live:
                logger.info("Reminder %s was cancelled during delivery", reminder.id)
                return
        if reminder.recurrence == Recurrence.DAILY:
            self._schedule_next(reminder, now)
        self.repository.update_status(reminder.id, ReminderStatus.FIRED, False)

    def _schedule_slot(
        self,
        user_id: UUID,
        slot: MealSlot,
        reminder_time: str,
        settings: UserSettings,
    ) -> ScheduledReminder:
        now = self.clock.now()
        fire_at = next_occurrence(
            parse_time_of_day(reminder_time), now, settings.timezone
        )
        reminder = self.repository.create_reminder(
            ScheduledReminder(
                id=uuid4(),
                user_id=user_id,
                meal_slot=slot,
                fire_at=fire_at,
                payload=build_reminder_payload(
                    user_id, slot, settings.reminder_style
                ),
                recurrence=Recurrence.DAILY,
                status=ReminderStatus.PENDING,
                active=True,
                created_at=now,
            )
        )
        self.arm(reminder)
        return reminder

    def _schedule_next(
        self, reminder: ScheduledReminder, now: datetime
    ) -> ScheduledReminder | None:
        """Create the next occurrence from the current commitment."""
        commitment = self.commitment_repository.get_commitment(reminder.user_id)
        reminder_time = armed_slots(commitment).get(reminder.meal_slot)
        if reminder_time is None:
            logger.info(
                "No further reminders for %s on %s",
                reminder.meal_slot,
                reminder.user_id,
            )
            return None
        settings = self.settings_service.get_settings(reminder.user_id)
        fire_at = next_occurrence(
            parse_time_of_day(reminder_time),
            max(reminder.fire_at, now),
            settings.timezone,
        )
        following = self.repository.create_reminder(
            replace(
                reminder,
                id=uuid4(),
                fire_at=fire_at,
                payload=build_reminder_payload(
                    reminder.user_id, reminder.meal_slot, settings.reminder_style
                ),
                status=ReminderStatus.PENDING,
                active=True,
                created_at=now,
            )
        )
        self.arm(following)
        return following
