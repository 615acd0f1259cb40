"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from meal_adherence.api.serializers import serialize_reminder

if TYPE_CHECKING:
    from meal_adherence.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health(request: Request) -> dict[str, object]:
    """Admin health check with scheduler state."""
    container: AppContainer = request.app.state.container
    timers = container.reminder_scheduler.timers
    next_fire_at = timers.next_fire_at()
    return {
        "status": "ok",
        "scheduler_running": timers.running,
        "armed_timers": len(timers),
        "next_fire_at": next_fire_at.isoformat() if next_fire_at else None,
    }


@router.get("/users/{user_id}/reminders", dependencies=[Depends(require_admin)])
async def list_reminders(user_id: UUID, request: Request) -> dict[str, object]:
    """Return a user's live reminders."""
    container: AppContainer = request.app.state.container
    reminders = container.reminder_scheduler.list_live_reminders(user_id)
    return {"reminders": [serialize_reminder(reminder) for reminder in reminders]}


@router.post(
    "/users/{user_id}/reminders/rebuild", dependencies=[Depends(require_admin)]
)
async def rebuild_reminders(user_id: UUID, request: Request) -> dict[str, object]:
    """Cancel and re-derive a user's reminders from their commitment."""
    container: AppContainer = request.app.state.container
    reminders = await container.reminder_scheduler.rebuild_schedule_for_user(user_id)
    return {"reminders": [serialize_reminder(reminder) for reminder in reminders]}


@router.delete("/reminders/{reminder_id}", dependencies=[Depends(require_admin)])
async def cancel_reminder(reminder_id: UUID, request: Request) -> dict[str, str]:
    """Cancel a single reminder."""
    container: AppContainer = request.app.state.container
    container.reminder_scheduler.cancel(reminder_id)
    return {"status": "cancelled"}
