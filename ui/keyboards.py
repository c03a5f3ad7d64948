from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from core.models import Habit, CheckOutcome

CHECK_PREFIX = "habit_check"

# answer in callback data -> outcome
CHECK_ANSWERS = {
    "yes": CheckOutcome.COMPLETED,
    "no": CheckOutcome.DROPPED,
    "skip": CheckOutcome.SKIPPED,
}

CHECK_PATTERN = rf"^{CHECK_PREFIX}:(.+):(yes|no|skip)$"


def check_callback_data(habit_id: str, answer: str) -> str:
    return f"{CHECK_PREFIX}:{habit_id}:{answer}"


def habit_check_keyboard(habit: Habit) -> InlineKeyboardMarkup:
    """Yes / No / Skip buttons under a check-in prompt"""
    keyboard = [
        [InlineKeyboardButton("✅ Yes", callback_data=check_callback_data(habit.habit_id, "yes"))],
        [InlineKeyboardButton("❌ No (drop streak)", callback_data=check_callback_data(habit.habit_id, "no"))],
        [InlineKeyboardButton("⏭️ Skip (keep streak)", callback_data=check_callback_data(habit.habit_id, "skip"))],
    ]
    return InlineKeyboardMarkup(keyboard)


def habits_keyboard(habits: List[Habit]) -> InlineKeyboardMarkup:
    """One row per habit opening its check-in prompt"""
    keyboard = [
        [InlineKeyboardButton(f"{habit.name} ({habit.streak}🔥)", callback_data=f"habit_open:{habit.habit_id}")]
        for habit in habits
    ]
    return InlineKeyboardMarkup(keyboard)


CONSENT_PATTERN = r"^consent_(accept|decline)$"


def consent_keyboard() -> InlineKeyboardMarkup:
    keyboard = [[
        InlineKeyboardButton("✅ I Accept", callback_data="consent_accept"),
        InlineKeyboardButton("❌ Decline", callback_data="consent_decline"),
    ]]
    return InlineKeyboardMarkup(keyboard)
