"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from meal_adherence.adapters.supabase_support import execute
from meal_adherence.domain.models import UserRecord
from meal_adherence.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user with the given id, if present."""
        response = execute(
            self.client.table("users")
            .select("id, telegram_user_id")
            .eq("id", str(user_id))
            .limit(1)
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def get_by_telegram_id(self, telegram_user_id: int) -> UserRecord | None:
        """Return the user for a Telegram user id, if present."""
        response = execute(
            self.client.table("users")
            .select("id, telegram_user_id")
            .eq("telegram_user_id", telegram_user_id)
            .limit(1)
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def create_user(self, telegram_user_id: int) -> UserRecord:
        """Create a new user row and return it."""
        response = execute(
            self.client.table("users").insert({"telegram_user_id": telegram_user_id})
        )
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _parse_row(response.data[0])

    def touch_last_active(self, user_id: UUID) -> None:
        """Update the last_active_at timestamp for a user."""
        execute(
            self.client.table("users")
            .update({"last_active_at": datetime.now(tz=UTC).isoformat()})
            .eq("id", str(user_id))
        )


def _parse_row(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])), telegram_user_id=int(row["telegram_user_id"])
    )
