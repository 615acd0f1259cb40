"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID, uuid4

import pytest

from meal_adherence.adapters.telegram_client import TelegramClient
from meal_adherence.config import Settings
from meal_adherence.containers import AppContainer
from meal_adherence.domain.commitments import Commitment
from meal_adherence.domain.errors import StorageUnavailable
from meal_adherence.domain.meals import DailyLog, LogEntry, MealSlot
from meal_adherence.domain.models import UserRecord, UserSettings
from meal_adherence.domain.reminders import (
    NotificationPayload,
    QuietHours,
    ReminderStatus,
    ReminderStyle,
    ScheduledReminder,
)
from meal_adherence.services.adherence import AdherenceService
from meal_adherence.services.cache import InMemoryCache
from meal_adherence.services.commitments import (
    CommitmentRepository,
    CommitmentService,
)
from meal_adherence.services.logs import LogRepository, MealLogService
from meal_adherence.services.nudges import NudgeService
from meal_adherence.services.reminders import (
    ReminderRepository,
    ReminderScheduler,
    ReminderSender,
)
from meal_adherence.services.user_settings import (
    UserSettingsRepository,
    UserSettingsService,
)
from meal_adherence.services.users import UserRepository, UserService

# Wednesday, noon UTC.
DEFAULT_NOW = datetime(2024, 3, 13, 12, 0, tzinfo=UTC)


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    current: datetime = DEFAULT_NOW

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta

    def move_to(self, moment: datetime) -> None:
        self.current = moment


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[int, UserRecord] = field(default_factory=dict)
    touched: list[UUID] = field(default_factory=list)

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        for user in self.users.values():
            if user.id == user_id:
                return user
        return None

    def get_by_telegram_id(self, telegram_user_id: int) -> UserRecord | None:
        return self.users.get(telegram_user_id)

    def create_user(self, telegram_user_id: int) -> UserRecord:
        user = UserRecord(id=uuid4(), telegram_user_id=telegram_user_id)
        self.users[telegram_user_id] = user
        return user

    def touch_last_active(self, user_id: UUID) -> None:
        self.touched.append(user_id)


@dataclass
class InMemoryUserSettingsRepository(UserSettingsRepository):
    """In-memory user settings repository for tests."""

    settings: dict[UUID, UserSettings] = field(default_factory=dict)

    def get_settings(self, user_id: UUID) -> UserSettings | None:
        return self.settings.get(user_id)

    def save_settings(self, settings: UserSettings) -> None:
        current = self.settings.get(settings.user_id)
        last_nudge_at = current.last_nudge_at if current else None
        self.settings[settings.user_id] = replace(
            settings, last_nudge_at=last_nudge_at
        )

    def set_last_nudge(self, user_id: UUID, nudged_at: datetime) -> None:
        current = self.settings.get(user_id) or UserSettings(
            user_id=user_id,
            timezone="UTC",
            quiet_hours=QuietHours(enabled=True, start=time(22, 0), end=time(7, 0)),
            reminder_style=ReminderStyle.GENTLE,
        )
        self.settings[user_id] = replace(current, last_nudge_at=nudged_at)


@dataclass
class InMemoryLogRepository(LogRepository):
    """In-memory daily log repository for tests."""

    days: dict[tuple[UUID, date], dict[MealSlot, LogEntry]] = field(
        default_factory=dict
    )
    available: bool = True

    def _check(self) -> None:
        if not self.available:
            raise StorageUnavailable("storage offline")

    def ensure_log(self, user_id: UUID, day: date) -> DailyLog:
        self._check()
        entries = self.days.setdefault((user_id, day), {})
        return DailyLog(user_id=user_id, day=day, entries=tuple(entries.values()))

    def upsert_entry(self, user_id: UUID, day: date, entry: LogEntry) -> None:
        self._check()
        self.days.setdefault((user_id, day), {})[entry.meal_slot] = entry

    def remove_entry(self, user_id: UUID, day: date, slot: MealSlot) -> None:
        self._check()
        self.days.get((user_id, day), {}).pop(slot, None)

    def list_logs(self, user_id: UUID, since: date) -> list[DailyLog]:
        self._check()
        logs = [
            DailyLog(user_id=owner, day=day, entries=tuple(entries.values()))
            for (owner, day), entries in self.days.items()
            if owner == user_id and day >= since
        ]
        return sorted(logs, key=lambda log: log.day, reverse=True)

    def add(self, user_id: UUID, day: date, *slots: MealSlot) -> None:
        """Seed a day with plain entries for the given slots."""
        entries = self.days.setdefault((user_id, day), {})
        for slot in slots:
            entries[slot] = LogEntry(
                meal_slot=slot, had_protein=True, had_vegetables=False
            )


@dataclass
class InMemoryCommitmentRepository(CommitmentRepository):
    """In-memory commitment repository for tests."""

    commitments: dict[UUID, Commitment] = field(default_factory=dict)
    saves: int = 0
    available: bool = True

    def get_commitment(self, user_id: UUID) -> Commitment | None:
        return self.commitments.get(user_id)

    def save_commitment(self, commitment: Commitment) -> Commitment:
        if not self.available:
            raise StorageUnavailable("storage offline")
        self.saves += 1
        self.commitments[commitment.user_id] = commitment
        return commitment


@dataclass
class InMemoryReminderRepository(ReminderRepository):
    """In-memory reminder repository for tests."""

    reminders: dict[UUID, ScheduledReminder] = field(default_factory=dict)
    available: bool = True

    def create_reminder(self, reminder: ScheduledReminder) -> ScheduledReminder:
        if not self.available:
            raise StorageUnavailable("storage offline")
        self.reminders[reminder.id] = reminder
        return reminder

    def get_reminder(self, reminder_id: UUID) -> ScheduledReminder | None:
        return self.reminders.get(reminder_id)

    def update_status(
        self, reminder_id: UUID, status: ReminderStatus, active: bool
    ) -> None:
        reminder = self.reminders.get(reminder_id)
        if reminder is not None:
            self.reminders[reminder_id] = replace(
                reminder, status=status, active=active
            )

    def list_live_reminders(self, user_id: UUID) -> list[ScheduledReminder]:
        return [
            reminder
            for reminder in self.list_all_live_reminders()
            if reminder.user_id == user_id
        ]

    def list_all_live_reminders(self) -> list[ScheduledReminder]:
        live = [reminder for reminder in self.reminders.values() if reminder.is_live]
        return sorted(live, key=lambda reminder: reminder.fire_at)


@dataclass
class RecordingSender(ReminderSender):
    """Sender that records delivered payloads."""

    delivered: list[NotificationPayload] = field(default_factory=list)
    fail: bool = False

    async def deliver(self, payload: NotificationPayload) -> None:
        if self.fail:
            raise RuntimeError("delivery failed")
        self.delivered.append(payload)


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str]] = field(default_factory=list)

    async def send_message(
        self, chat_id: int, text: str, disable_notification: bool = False
    ) -> None:
        self.messages.append((chat_id, text))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        scheduler_enabled=False,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def user_settings_repository() -> InMemoryUserSettingsRepository:
    return InMemoryUserSettingsRepository()


@pytest.fixture
def log_repository() -> InMemoryLogRepository:
    return InMemoryLogRepository()


@pytest.fixture
def commitment_repository() -> InMemoryCommitmentRepository:
    return InMemoryCommitmentRepository()


@pytest.fixture
def reminder_repository() -> InMemoryReminderRepository:
    return InMemoryReminderRepository()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def user_settings_service(
    user_settings_repository: InMemoryUserSettingsRepository, clock: FixedClock
) -> UserSettingsService:
    return UserSettingsService(repository=user_settings_repository, clock=clock)


@pytest.fixture
def meal_log_service(
    log_repository: InMemoryLogRepository,
    user_settings_service: UserSettingsService,
    clock: FixedClock,
) -> MealLogService:
    return MealLogService(
        repository=log_repository,
        settings_service=user_settings_service,
        clock=clock,
        cache=InMemoryCache(clock=clock),
    )


@pytest.fixture
def reminder_scheduler(
    reminder_repository: InMemoryReminderRepository,
    commitment_repository: InMemoryCommitmentRepository,
    user_settings_service: UserSettingsService,
    sender: RecordingSender,
    clock: FixedClock,
) -> ReminderScheduler:
    scheduler = ReminderScheduler(
        repository=reminder_repository,
        commitment_repository=commitment_repository,
        settings_service=user_settings_service,
        sender=sender,
        clock=clock,
    )
    user_settings_service.schedule_sync = scheduler
    return scheduler


@pytest.fixture
def commitment_service(
    commitment_repository: InMemoryCommitmentRepository,
    reminder_scheduler: ReminderScheduler,
    clock: FixedClock,
) -> CommitmentService:
    return CommitmentService(
        repository=commitment_repository,
        clock=clock,
        schedule_sync=reminder_scheduler,
    )


@pytest.fixture
def adherence_service(
    commitment_repository: InMemoryCommitmentRepository,
    meal_log_service: MealLogService,
    user_settings_service: UserSettingsService,
    clock: FixedClock,
) -> AdherenceService:
    return AdherenceService(
        commitment_repository=commitment_repository,
        log_service=meal_log_service,
        settings_service=user_settings_service,
        clock=clock,
    )


@pytest.fixture
def nudge_service(
    commitment_repository: InMemoryCommitmentRepository,
    meal_log_service: MealLogService,
    user_settings_service: UserSettingsService,
    clock: FixedClock,
) -> NudgeService:
    return NudgeService(
        commitment_repository=commitment_repository,
        log_service=meal_log_service,
        settings_service=user_settings_service,
        clock=clock,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    clock: FixedClock,
    user_repository: InMemoryUserRepository,
    user_settings_service: UserSettingsService,
    meal_log_service: MealLogService,
    commitment_service: CommitmentService,
    adherence_service: AdherenceService,
    nudge_service: NudgeService,
    reminder_scheduler: ReminderScheduler,
) -> AppContainer:
    async def close_resources() -> None:
        await reminder_scheduler.stop()

    return AppContainer(
        settings=settings,
        clock=clock,
        user_service=UserService(user_repository),
        user_settings_service=user_settings_service,
        meal_log_service=meal_log_service,
        commitment_service=commitment_service,
        adherence_service=adherence_service,
        nudge_service=nudge_service,
        reminder_scheduler=reminder_scheduler,
        close_resources=close_resources,
    )
