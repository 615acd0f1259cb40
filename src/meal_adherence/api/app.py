"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from meal_adherence.api.admin import router as admin_router
from meal_adherence.api.schemas import (
    CreateUserRequest,
    LogMealRequest,
    ReminderSettingsRequest,
    SetCommitmentRequest,
    UpdateSettingsRequest,
)
from meal_adherence.api.serializers import (
    serialize_adherence,
    serialize_commitment,
    serialize_habits,
    serialize_log,
    serialize_settings,
)
from meal_adherence.app_logging import configure_logging
from meal_adherence.containers import AppContainer
from meal_adherence.domain.commitments import ReminderConfig
from meal_adherence.domain.errors import InvalidInput, StorageUnavailable
from meal_adherence.domain.meals import MealSlot, parse_slot, parse_time_of_day
from meal_adherence.domain.reminders import QuietHours


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        if state_container.settings.scheduler_enabled:
            await state_container.reminder_scheduler.start()
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(
        request: Request, exc: InvalidInput
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(
        request: Request, exc: StorageUnavailable
    ) -> JSONResponse:
        logger.warning("Storage unavailable for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage is temporarily unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/users")
    async def create_user(
        body: CreateUserRequest, request: Request
    ) -> dict[str, object]:
        """Return the user for a Telegram id, creating it if needed."""
        state_container: AppContainer = request.app.state.container
        user = state_container.user_service.ensure_user(body.telegram_user_id)
        return {"id": str(user.id), "telegram_user_id": user.telegram_user_id}

    @app.get("/users/{user_id}/logs/today")
    async def get_todays_log(user_id: UUID, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        log = state_container.meal_log_service.get_todays_log(user_id)
        return serialize_log(log)

    @app.put("/users/{user_id}/logs/today/{slot}")
    async def log_meal(
        user_id: UUID, slot: str, body: LogMealRequest, request: Request
    ) -> dict[str, object]:
        """Log a meal for today, replacing any entry in the same slot."""
        state_container: AppContainer = request.app.state.container
        log = state_container.meal_log_service.log_meal(
            user_id=user_id,
            meal_slot=slot,
            had_protein=body.had_protein,
            had_vegetables=body.had_vegetables,
            time_eaten=body.time_eaten,
            meal_name=body.meal_name,
            notes=body.notes,
        )
        return serialize_log(log)

    @app.delete("/users/{user_id}/logs/today/{slot}")
    async def clear_meal_entry(
        user_id: UUID, slot: str, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        log = state_container.meal_log_service.clear_meal_entry(user_id, slot)
        return serialize_log(log)

    @app.get("/users/{user_id}/logs")
    async def get_history(
        user_id: UUID, request: Request, days: int = 7
    ) -> dict[str, object]:
        """Return recent daily logs, newest first."""
        state_container: AppContainer = request.app.state.container
        logs = state_container.meal_log_service.get_recent_history(user_id, days)
        return {"logs": [serialize_log(log) for log in logs]}

    @app.get("/users/{user_id}/adherence")
    async def get_adherence_stats(
        user_id: UUID, request: Request, days: int | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        if days is not None and days < 1:
            raise InvalidInput("days must be at least 1")
        result = state_container.adherence_service.get_adherence_stats(user_id, days)
        return serialize_adherence(result)

    @app.get("/users/{user_id}/habits")
    async def get_habit_stats(
        user_id: UUID, request: Request, days: int | None = None
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        stats = state_container.adherence_service.get_habit_stats(user_id, days)
        return serialize_habits(stats)

    @app.get("/users/{user_id}/commitment")
    async def get_commitment(user_id: UUID, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        commitment = state_container.commitment_service.get_commitment(user_id)
        if commitment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return serialize_commitment(commitment)

    @app.put("/users/{user_id}/commitment")
    async def set_commitment(
        user_id: UUID, body: SetCommitmentRequest, request: Request
    ) -> dict[str, object]:
        """Replace committed slots and re-derive reminders."""
        state_container: AppContainer = request.app.state.container
        commitment = await state_container.commitment_service.set_commitment(
            user_id,
            body.slots,
            ReminderConfig(
                enabled=body.reminders_enabled,
                times=_parse_times(body.reminder_times),
            ),
        )
        return serialize_commitment(commitment)

    @app.patch("/users/{user_id}/commitment/reminders")
    async def update_reminder_settings(
        user_id: UUID, body: ReminderSettingsRequest, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        commitment = await state_container.commitment_service.update_reminder_settings(
            user_id,
            enabled=body.enabled,
            times=_parse_times(body.times) if body.times is not None else None,
        )
        return serialize_commitment(commitment)

    @app.get("/users/{user_id}/onboarding")
    async def get_onboarding(user_id: UUID, request: Request) -> dict[str, bool]:
        state_container: AppContainer = request.app.state.container
        return {
            "should_onboard": state_container.commitment_service.should_onboard(
                user_id
            )
        }

    @app.get("/users/{user_id}/meals-needing-logging")
    async def get_meals_needing_logging(
        user_id: UUID, request: Request
    ) -> dict[str, object]:
        """Return committed meals that are due but not logged today."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.nudge_service.get_meals_needing_logging_now(user_id)
        return {"meals": [slot.value for slot in meals]}

    @app.post("/users/{user_id}/nudge")
    async def take_nudge(user_id: UUID, request: Request) -> dict[str, object]:
        """Return due meals once per cooldown period and record the nudge."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.nudge_service.take_nudge(user_id)
        return {"meals": [slot.value for slot in meals]}

    @app.get("/users/{user_id}/settings")
    async def get_settings(user_id: UUID, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        settings = state_container.user_settings_service.get_settings(user_id)
        return serialize_settings(settings)

    @app.put("/users/{user_id}/settings")
    async def update_settings(
        user_id: UUID, body: UpdateSettingsRequest, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        quiet_hours = None
        if body.quiet_hours is not None:
            quiet_hours = QuietHours(
                enabled=body.quiet_hours.enabled,
                start=parse_time_of_day(body.quiet_hours.start),
                end=parse_time_of_day(body.quiet_hours.end),
            )
        settings = await state_container.user_settings_service.update_settings(
            user_id,
            timezone=body.timezone,
            quiet_hours=quiet_hours,
            reminder_style=body.reminder_style,
        )
        return serialize_settings(settings)

    return app


def _parse_times(raw: dict[str, str]) -> dict[MealSlot, str]:
    return {parse_slot(slot): value for slot, value in raw.items()}
