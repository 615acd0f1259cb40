"""Delivers reminder payloads as Telegram messages."""

import logging
from dataclasses import dataclass
from uuid import UUID

from meal_adherence.adapters.telegram_client import TelegramClient
from meal_adherence.domain.reminders import NotificationPayload
from meal_adherence.services.reminders import ReminderSender
from meal_adherence.services.users import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class TelegramReminderSender(ReminderSender):
    """Send reminders to the Telegram chat of the payload's user."""

    telegram_client: TelegramClient
    user_repository: UserRepository

    async def deliver(self, payload: NotificationPayload) -> None:
        """Send the payload title and body to the user's private chat."""
        raw_user_id = payload.data.get("user_id")
        if not raw_user_id:
            logger.warning("Reminder %s has no user id", payload.tag)
            return
        user = self.user_repository.get_by_id(UUID(str(raw_user_id)))
        if user is None:
            logger.warning("No user %s for reminder %s", raw_user_id, payload.tag)
            return
        await self.telegram_client.send_message(
            chat_id=user.telegram_user_id,
            text=f"{payload.title}\n\n{payload.body}",
        )
