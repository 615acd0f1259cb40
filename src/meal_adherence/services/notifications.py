"""Reminder copy templates."""

from uuid import UUID

from meal_adherence.domain.meals import SLOT_LABELS, MealSlot
from meal_adherence.domain.reminders import NotificationPayload, ReminderStyle

_SNACK = "snack"

_MESSAGES: dict[ReminderStyle, dict[str, str]] = {
    ReminderStyle.GENTLE: {
        "breakfast": (
            "Good morning! Consider a protein-rich breakfast to start your day."
        ),
        "lunch": "Lunch time reminder. Listen to your body and eat when ready.",
        "dinner": "Evening meal time. A gentle reminder to nourish yourself.",
        _SNACK: "Snack time if you're hungry. No pressure, just a gentle nudge.",
    },
    ReminderStyle.MOTIVATIONAL: {
        "breakfast": "Rise and fuel! Your body is ready for a protein-packed start!",
        "lunch": "Lunch power hour! You're doing great on your health journey!",
        "dinner": "Dinner time, champion! End your day with nourishing choices!",
        _SNACK: "Snack smart! You're building healthy habits one bite at a time!",
    },
    ReminderStyle.EDUCATIONAL: {
        "breakfast": (
            "Breakfast breaks the fast. Protein now helps maintain muscle all day."
        ),
        "lunch": (
            "Midday is when your body needs sustained energy from a balanced meal."
        ),
        "dinner": "Lighter evening meals support better sleep and digestion.",
        _SNACK: "Choose protein or fiber to support stable blood sugar.",
    },
}

_TEMPLATE_KEYS: dict[MealSlot, str] = {
    MealSlot.BREAKFAST: "breakfast",
    MealSlot.MID_MORNING: _SNACK,
    MealSlot.LUNCH: "lunch",
    MealSlot.AFTERNOON: _SNACK,
    MealSlot.DINNER: "dinner",
    MealSlot.EVENING: _SNACK,
}


def build_reminder_payload(
    user_id: UUID, slot: MealSlot, style: ReminderStyle
) -> NotificationPayload:
    """Build the reminder shown for a committed slot."""
    key = _TEMPLATE_KEYS.get(slot, _SNACK)
    body = _MESSAGES.get(style, _MESSAGES[ReminderStyle.GENTLE]).get(
        key, f"Time for {SLOT_LABELS[slot].lower()}! Remember to log it."
    )
    return NotificationPayload(
        title=f"{SLOT_LABELS[slot]} Time",
        body=body,
        tag=f"meal_{slot.value}",
        data={
            "user_id": str(user_id),
            "meal_slot": slot.value,
            "reminder_style": style.value,
        },
    )
