# handlers/callbacks/habits.py

import logging

from telegram.ext import Application, CallbackQueryHandler, ContextTypes
from telegram import Update

from core.exceptions import HabitError, NotFoundError
from handlers.commands.habits import get_habit_service
from ui.keyboards import CHECK_ANSWERS, CHECK_PATTERN, CONSENT_PATTERN, habit_check_keyboard
from ui.messages import (
    check_prompt, check_result_message, welcome_message, CONSENT_ACCEPTED, CONSENT_DECLINED,
)

logger = logging.getLogger(__name__)


async def habit_check_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Yes / No / Skip answer to a check-in prompt"""
    query = update.callback_query
    habit_id, answer = context.match.group(1), context.match.group(2)
    outcome = CHECK_ANSWERS[answer]

    service = get_habit_service(context)
    try:
        result = service.record_check(query.from_user.id, habit_id, outcome)
    except NotFoundError:
        await query.answer("This habit no longer exists", show_alert=True)
        return
    except HabitError as e:
        logger.error(f"Failed to record check for user {query.from_user.id}: {e}")
        await query.answer("❌ Could not save your answer, please try again", show_alert=True)
        return

    await query.answer()
    await query.edit_message_text(
        check_result_message(result.habit, outcome, result.changed, result.new_badges)
    )


async def habit_open_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    habit_id = query.data.split(":", 1)[1]

    try:
        habit = get_habit_service(context).get_habit(query.from_user.id, habit_id)
    except HabitError:
        await query.answer("This habit no longer exists", show_alert=True)
        return

    await query.answer()
    await query.edit_message_text(check_prompt(habit), reply_markup=habit_check_keyboard(habit))


async def consent_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Answer to the privacy policy prompt shown by /start"""
    query = update.callback_query
    user = query.from_user
    accepted = context.match.group(1) == "accept"

    try:
        get_habit_service(context).set_consent(user.id, accepted)
    except HabitError as e:
        logger.error(f"Failed to save consent of user {user.id}: {e}")
        await query.answer("❌ Could not save your answer, please try again", show_alert=True)
        return

    logger.info(f"User {user.id} {'accepted' if accepted else 'declined'} consent")
    await query.answer()
    await query.edit_message_text(CONSENT_ACCEPTED if accepted else CONSENT_DECLINED)
    if accepted:
        await query.message.reply_text(welcome_message(user.first_name))


def register_habits_callbacks(application: Application):
    application.add_handler(CallbackQueryHandler(habit_check_callback, pattern=CHECK_PATTERN))
    application.add_handler(CallbackQueryHandler(habit_open_callback, pattern="^habit_open:"))
    application.add_handler(CallbackQueryHandler(consent_callback, pattern=CONSENT_PATTERN))
