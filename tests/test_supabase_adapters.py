"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from uuid import UUID, uuid4

import httpx
import pytest
from postgrest.exceptions import APIError

from meal_adherence.adapters.supabase_commitment_repository import (
    SupabaseCommitmentRepository,
)
from meal_adherence.adapters.supabase_log_repository import SupabaseLogRepository
from meal_adherence.adapters.supabase_reminder_repository import (
    SupabaseReminderRepository,
)
from meal_adherence.adapters.supabase_user_repository import SupabaseUserRepository
from meal_adherence.adapters.supabase_user_settings_repository import (
    SupabaseUserSettingsRepository,
)
from meal_adherence.domain.commitments import Commitment
from meal_adherence.domain.errors import StorageUnavailable
from meal_adherence.domain.meals import LogEntry, MealSlot
from meal_adherence.domain.models import UserSettings
from meal_adherence.domain.reminders import (
    NotificationPayload,
    QuietHours,
    Recurrence,
    ReminderStatus,
    ReminderStyle,
    ScheduledReminder,
)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "upsert": [],
            "update": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_options: dict[str, object] = field(default_factory=dict)
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    error: Exception | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def upsert(self, payload, **options) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_options = options
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def gte(self, _column: str, _value) -> "FakeTable":  # type: ignore[no-untyped-def]
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_supabase_user_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    users_table = client.table("users")
    user_id = str(uuid4())
    users_table.queue("insert", [{"id": user_id, "telegram_user_id": 123}])
    users_table.queue("select", [{"id": user_id, "telegram_user_id": 123}])
    users_table.queue("select", [{"id": user_id, "telegram_user_id": 123}])

    repository = SupabaseUserRepository(client)
    created = repository.create_user(123)
    fetched = repository.get_by_telegram_id(123)
    by_id = repository.get_by_id(created.id)

    assert str(created.id) == user_id
    assert fetched is not None
    assert fetched.telegram_user_id == 123
    assert by_id == created


def test_supabase_user_settings_repository() -> None:
    client = FakeSupabaseClient()
    settings_table = client.table("user_settings")
    user_id = uuid4()
    settings_table.queue(
        "select",
        [
            {
                "user_id": str(user_id),
                "timezone": "Europe/London",
                "quiet_hours_enabled": True,
                "quiet_hours_start": "21:30:00",
                "quiet_hours_end": "06:45:00",
                "reminder_style": "motivational",
                "last_nudge_at": None,
            }
        ],
    )

    repository = SupabaseUserSettingsRepository(client)
    settings = repository.get_settings(user_id)

    assert settings is not None
    assert settings.timezone == "Europe/London"
    assert settings.quiet_hours.start == time(21, 30)
    assert settings.reminder_style == ReminderStyle.MOTIVATIONAL
    assert repository.get_settings(uuid4()) is None

    repository.save_settings(
        UserSettings(
            user_id=user_id,
            timezone="UTC",
            quiet_hours=QuietHours(enabled=False, start=time(23, 0), end=time(6, 0)),
            reminder_style=ReminderStyle.GENTLE,
        )
    )
    assert isinstance(settings_table.last_payload, dict)
    assert settings_table.last_payload["quiet_hours_start"] == "23:00"
    assert settings_table.last_options["on_conflict"] == "user_id"


def test_supabase_log_repository_groups_entries_by_day() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    client.table("daily_logs").queue(
        "select", [{"date": "2024-03-13"}, {"date": "2024-03-12"}]
    )
    client.table("meal_log_entries").queue(
        "select",
        [
            {"date": "2024-03-13", "meal_slot": "lunch", "had_protein": True},
            {"date": "2024-03-13", "meal_slot": "dinner", "had_vegetables": True},
        ],
    )

    repository = SupabaseLogRepository(client)
    logs = repository.list_logs(user_id, date(2024, 3, 1))

    assert [log.day for log in logs] == [date(2024, 3, 13), date(2024, 3, 12)]
    assert logs[0].logged_slots == frozenset({MealSlot.LUNCH, MealSlot.DINNER})
    assert logs[1].entries == ()


def test_supabase_log_repository_upserts_entry_per_slot() -> None:
    client = FakeSupabaseClient()
    entries_table = client.table("meal_log_entries")
    entries_table.queue(
        "select", [{"date": "2024-03-13", "meal_slot": "breakfast", "notes": ""}]
    )

    repository = SupabaseLogRepository(client)
    log = repository.ensure_log(uuid4(), date(2024, 3, 13))
    repository.upsert_entry(
        log.user_id,
        log.day,
        LogEntry(meal_slot=MealSlot.LUNCH, had_protein=True, had_vegetables=True),
    )

    assert log.logged_slots == frozenset({MealSlot.BREAKFAST})
    assert client.table("daily_logs").last_options["ignore_duplicates"] is True
    assert entries_table.last_options["on_conflict"] == "user_id,date,meal_slot"
    assert isinstance(entries_table.last_payload, dict)
    assert entries_table.last_payload["meal_slot"] == "lunch"


def test_supabase_commitment_repository_skips_unknown_slots() -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_commitments")
    user_id = uuid4()
    row = {
        "user_id": str(user_id),
        "committed_slots": ["breakfast", "brunch"],
        "reminder_times": {"breakfast": "08:00", "brunch": "11:00"},
        "reminders_enabled": True,
        "onboarding_completed": True,
        "created_at": "2024-03-01T09:00:00+00:00",
        "updated_at": None,
    }
    table.queue("select", [row])
    table.queue("upsert", [row])

    repository = SupabaseCommitmentRepository(client)
    fetched = repository.get_commitment(user_id)
    saved = repository.save_commitment(
        Commitment(
            user_id=user_id,
            slots=(MealSlot.BREAKFAST,),
            reminder_times={MealSlot.BREAKFAST: "08:00"},
            reminders_enabled=True,
            onboarding_completed=True,
        )
    )

    assert fetched is not None
    assert fetched.slots == (MealSlot.BREAKFAST,)
    assert fetched.reminder_times == {MealSlot.BREAKFAST: "08:00"}
    assert fetched.created_at == datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
    assert saved.slots == (MealSlot.BREAKFAST,)


def test_supabase_reminder_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("scheduled_reminders")
    reminder = ScheduledReminder(
        id=uuid4(),
        user_id=uuid4(),
        meal_slot=MealSlot.DINNER,
        fire_at=datetime(2024, 3, 13, 19, 0, tzinfo=UTC),
        payload=NotificationPayload(title="Dinner Time", body="Eat", tag="meal_dinner"),
        recurrence=Recurrence.DAILY,
        status=ReminderStatus.PENDING,
        active=True,
    )
    row = {
        "id": str(reminder.id),
        "user_id": str(reminder.user_id),
        "meal_slot": "dinner",
        "fire_at": "2024-03-13T19:00:00+00:00",
        "payload": {"title": "Dinner Time", "body": "Eat", "tag": "meal_dinner"},
        "recurrence": "daily",
        "status": "pending",
        "active": True,
        "created_at": None,
    }
    table.queue("insert", [row])
    table.queue("select", [row])

    repository = SupabaseReminderRepository(client)
    created = repository.create_reminder(reminder)
    live = repository.list_live_reminders(reminder.user_id)
    repository.update_status(reminder.id, ReminderStatus.CANCELLED, False)

    assert created == reminder
    assert live == [reminder]
    assert table.last_payload == {"status": "cancelled", "active": False}
    assert ("id", str(reminder.id)) in table.last_filters


@pytest.mark.parametrize(
    "error",
    [
        APIError({"message": "upstream unavailable", "code": "503"}),
        httpx.ConnectError("connection refused"),
    ],
)
def test_storage_failures_raise_storage_unavailable(error: Exception) -> None:
    client = FakeSupabaseClient()
    client.table("meal_commitments").error = error

    repository = SupabaseCommitmentRepository(client)

    with pytest.raises(StorageUnavailable):
        repository.get_commitment(UUID(int=1))
