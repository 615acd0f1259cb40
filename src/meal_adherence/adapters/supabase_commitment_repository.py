"""Supabase repository for meal commitments."""

import logging
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from meal_adherence.adapters.supabase_support import execute, parse_timestamp
from meal_adherence.domain.commitments import Commitment
from meal_adherence.domain.meals import MealSlot
from meal_adherence.services.commitments import CommitmentRepository

logger = logging.getLogger(__name__)

_COLUMNS = (
    "user_id, committed_slots, reminder_times, reminders_enabled, "
    "onboarding_completed, created_at, updated_at"
)
_KNOWN_SLOTS = {slot.value for slot in MealSlot}


@dataclass
class SupabaseCommitmentRepository(CommitmentRepository):
    """Supabase implementation for commitments."""

    client: Client

    def get_commitment(self, user_id: UUID) -> Commitment | None:
        """Return the stored commitment for a user."""
        response = execute(
            self.client.table("meal_commitments")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .limit(1)
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def save_commitment(self, commitment: Commitment) -> Commitment:
        """Replace the commitment row in a single upsert."""
        response = execute(
            self.client.table("meal_commitments").upsert(
                {
                    "user_id": str(commitment.user_id),
                    "committed_slots": [slot.value for slot in commitment.slots],
                    "reminder_times": {
                        slot.value: value
                        for slot, value in commitment.reminder_times.items()
                    },
                    "reminders_enabled": commitment.reminders_enabled,
                    "onboarding_completed": commitment.onboarding_completed,
                    "created_at": commitment.created_at.isoformat()
                    if commitment.created_at
                    else None,
                    "updated_at": commitment.updated_at.isoformat()
                    if commitment.updated_at
                    else None,
                },
                on_conflict="user_id",
            )
        )
        if not response.data:
            raise RuntimeError("Failed to save meal commitment")
        return _parse_row(response.data[0])


def _parse_row(row: dict[str, object]) -> Commitment:
    raw_slots = row.get("committed_slots") or []
    raw_times = row.get("reminder_times") or {}
    unknown = [slot for slot in raw_slots if slot not in _KNOWN_SLOTS]
    if unknown:
        logger.warning("Ignoring unknown committed slots: %s", unknown)
    return Commitment(
        user_id=UUID(str(row["user_id"])),
        slots=tuple(MealSlot(slot) for slot in raw_slots if slot in _KNOWN_SLOTS),
        reminder_times={
            MealSlot(slot): str(value)
            for slot, value in raw_times.items()
            if slot in _KNOWN_SLOTS
        },
        reminders_enabled=bool(row.get("reminders_enabled", True)),
        onboarding_completed=bool(row.get("onboarding_completed", False)),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )
