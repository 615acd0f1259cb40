"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

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
from meal_adherence.adapters.telegram_client import HttpxTelegramClient
from meal_adherence.adapters.telegram_reminder_sender import TelegramReminderSender
from meal_adherence.config import Settings
from meal_adherence.services.adherence import AdherenceService
from meal_adherence.services.cache import InMemoryCache
from meal_adherence.services.clock import Clock, SystemClock
from meal_adherence.services.commitments import CommitmentService
from meal_adherence.services.logs import MealLogService
from meal_adherence.services.nudges import NudgeService
from meal_adherence.services.reminders import ReminderScheduler
from meal_adherence.services.user_settings import UserSettingsService
from meal_adherence.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    clock: Clock
    user_service: UserService
    user_settings_service: UserSettingsService
    meal_log_service: MealLogService
    commitment_service: CommitmentService
    adherence_service: AdherenceService
    nudge_service: NudgeService
    reminder_scheduler: ReminderScheduler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    clock = SystemClock()
    user_repository = SupabaseUserRepository(supabase_client)
    commitment_repository = SupabaseCommitmentRepository(supabase_client)
    user_settings_service = UserSettingsService(
        repository=SupabaseUserSettingsRepository(supabase_client),
        clock=clock,
        default_timezone=resolved_settings.default_timezone,
        default_quiet_hours=resolved_settings.default_quiet_hours(),
        default_reminder_style=resolved_settings.reminder_style,
    )
    meal_log_service = MealLogService(
        repository=SupabaseLogRepository(supabase_client),
        settings_service=user_settings_service,
        clock=clock,
        cache=InMemoryCache(clock=clock),
        cache_ttl_seconds=resolved_settings.history_cache_ttl_seconds,
    )
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    reminder_scheduler = ReminderScheduler(
        repository=SupabaseReminderRepository(supabase_client),
        commitment_repository=commitment_repository,
        settings_service=user_settings_service,
        sender=TelegramReminderSender(telegram_client, user_repository),
        clock=clock,
    )
    user_settings_service.schedule_sync = reminder_scheduler
    commitment_service = CommitmentService(
        repository=commitment_repository,
        clock=clock,
        schedule_sync=reminder_scheduler,
    )
    adherence_service = AdherenceService(
        commitment_repository=commitment_repository,
        log_service=meal_log_service,
        settings_service=user_settings_service,
        clock=clock,
        window_days=resolved_settings.adherence_window_days,
    )
    nudge_service = NudgeService(
        commitment_repository=commitment_repository,
        log_service=meal_log_service,
        settings_service=user_settings_service,
        clock=clock,
        cooldown=resolved_settings.nudge_cooldown,
    )

    async def close_resources() -> None:
        await reminder_scheduler.stop()
        await telegram_client.close()

    return AppContainer(
        settings=resolved_settings,
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
