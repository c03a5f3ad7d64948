# handlers/commands/habits.py

import logging
from typing import Optional

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from core.exceptions import HabitError, NotFoundError
from core.history import reconstruct, summarize
from core.models import Habit, UserRecord
from services.habit_service import HabitService, parse_schedule
from ui.keyboards import habit_check_keyboard, habits_keyboard, consent_keyboard
from ui.messages import (
    welcome_message, habits_list_message, check_prompt, analytics_message, schedule_text,
    consent_message,
)

logger = logging.getLogger(__name__)


def get_habit_service(context: ContextTypes.DEFAULT_TYPE) -> HabitService:
    return context.application.bot_data["habit_service"]


def _default_time(context: ContextTypes.DEFAULT_TYPE):
    return context.application.bot_data.get("default_reminder", (22, 0))


def _habit_by_number(record: Optional[UserRecord], token: str) -> Habit:
    """Resolve the 1-based number shown by /myhabits"""
    if record is None or not record.habits:
        raise NotFoundError("You have no habits yet")
    if not token.isdigit() or not 1 <= int(token) <= len(record.habits):
        raise NotFoundError(f"Habit number must be between 1 and {len(record.habits)}")
    return record.habits[int(token) - 1]

# ===== COMMANDS =====

async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Register the user; ask for consent before the first use"""
    user = update.effective_user
    record = get_habit_service(context).register_user(user.id, user.username, user.first_name)

    if not record.preferences.consent_accepted:
        await update.message.reply_html(consent_message(), reply_markup=consent_keyboard())
        return

    await update.message.reply_text(welcome_message(user.first_name))


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(welcome_message(update.effective_user.first_name))


async def newhabit_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/newhabit <name>"""
    name = " ".join(context.args or []).strip()
    if not name:
        await update.message.reply_text("Usage: /newhabit <name>\nExample: /newhabit Read 10 pages")
        return

    service = get_habit_service(context)
    try:
        habit = service.create_habit(update.effective_user.id, name)
    except HabitError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    hour, minute = _default_time(context)
    await update.message.reply_text(
        f'✅ Habit "{habit.name}" created!\n'
        f"I will remind you every day at {hour:02d}:{minute:02d}. "
        f"Use /schedule to change it."
    )


async def myhabits_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = get_habit_service(context)
    record = service.store.get(update.effective_user.id)
    hour, minute = _default_time(context)
    keyboard = habits_keyboard(record.habits) if record and record.habits else None
    await update.message.reply_html(habits_list_message(record, hour, minute), reply_markup=keyboard)


async def check_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Send a prompt for every active habit not yet checked today"""
    service = get_habit_service(context)
    record = service.store.get(update.effective_user.id)
    if record is None or not record.habits:
        await update.message.reply_text("You have no habits yet. Add one with /newhabit <name>")
        return

    today = service.today_for(record).isoformat()
    pending = [h for h in record.habits if not h.disabled and h.last_checked_date != today]
    if not pending:
        await update.message.reply_text("🎉 All habits are checked for today!")
        return

    for habit in pending:
        await update.message.reply_text(check_prompt(habit), reply_markup=habit_check_keyboard(habit))


async def schedule_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/schedule <n> daily 20:30 | weekly monday,friday 18:00 | monthly 1,15 09:00 | interval 2 20:00"""
    args = context.args or []
    if len(args) < 3:
        await update.message.reply_text(
            "Usage: /schedule <habit number> <schedule>\n\n"
            "Examples:\n"
            "/schedule 1 daily 20:30\n"
            "/schedule 1 weekly monday,friday 18:00\n"
            "/schedule 1 monthly 1,15 09:00\n"
            "/schedule 1 interval 2 20:00\n"
            "/schedule 1 default"
        )
        return

    service = get_habit_service(context)
    user_id = update.effective_user.id
    try:
        record = service.store.get(user_id)
        habit = _habit_by_number(record, args[0])
        if args[1].lower() == "default":
            schedule = None
        else:
            schedule = parse_schedule(" ".join(args[1:]), record.timezone, service.today_for(record))
        updated = service.set_schedule(user_id, habit.habit_id, schedule)
    except HabitError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    hour, minute = _default_time(context)
    await update.message.reply_text(
        f'⏰ Reminder for "{updated.name}": {schedule_text(updated, record.timezone, hour, minute)}'
    )


async def timezone_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/timezone Europe/Paris"""
    service = get_habit_service(context)
    if not context.args:
        record = service.store.get(update.effective_user.id)
        current = record.timezone if record else "UTC"
        await update.message.reply_text(f"Your time zone: {current}\nChange it with /timezone <Area/City>")
        return

    try:
        record = service.set_timezone(update.effective_user.id, context.args[0])
    except HabitError as e:
        await update.message.reply_text(f"❌ {e}")
        return
    await update.message.reply_text(f"🌍 Time zone set to {record.timezone}")


async def deletehabit_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = get_habit_service(context)
    user_id = update.effective_user.id
    try:
        habit = _habit_by_number(service.store.get(user_id), (context.args or [""])[0])
        service.delete_habit(user_id, habit.habit_id)
    except HabitError as e:
        await update.message.reply_text(f"❌ {e}\nUsage: /deletehabit <habit number>")
        return
    await update.message.reply_text(f'🗑 Habit "{habit.name}" deleted.')


async def reminders_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/reminders <n> toggles the reminder of a habit"""
    service = get_habit_service(context)
    user_id = update.effective_user.id
    try:
        habit = _habit_by_number(service.store.get(user_id), (context.args or [""])[0])
        updated = service.toggle_reminder(user_id, habit.habit_id)
    except HabitError as e:
        await update.message.reply_text(f"❌ {e}\nUsage: /reminders <habit number>")
        return
    state = "on 🔔" if updated.reminder_enabled else "off 🔕"
    await update.message.reply_text(f'Reminders for "{updated.name}" are {state}')


async def disable_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/disable <n> pauses or resumes a habit"""
    service = get_habit_service(context)
    user_id = update.effective_user.id
    try:
        habit = _habit_by_number(service.store.get(user_id), (context.args or [""])[0])
        updated = service.toggle_disabled(user_id, habit.habit_id)
    except HabitError as e:
        await update.message.reply_text(f"❌ {e}\nUsage: /disable <habit number>")
        return
    state = "paused ⏸" if updated.disabled else "active ▶️"
    await update.message.reply_text(f'"{updated.name}" is now {state}')


async def analytics_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    service = get_habit_service(context)
    record = service.store.get(update.effective_user.id)
    if record is None or not record.habits:
        await update.message.reply_text("No habits to analyze yet.")
        return

    today = service.today_for(record)
    parts = []
    for habit in record.habits:
        summary = summarize(habit, today, reconstruct(habit, today))
        parts.append(analytics_message(habit, summary))
    await update.message.reply_html("\n\n".join(parts))


def register_habit_handlers(application: Application):
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("newhabit", newhabit_command))
    application.add_handler(CommandHandler("myhabits", myhabits_command))
    application.add_handler(CommandHandler("check", check_command))
    application.add_handler(CommandHandler("schedule", schedule_command))
    application.add_handler(CommandHandler("timezone", timezone_command))
    application.add_handler(CommandHandler("deletehabit", deletehabit_command))
    application.add_handler(CommandHandler("reminders", reminders_command))
    application.add_handler(CommandHandler("disable", disable_command))
    application.add_handler(CommandHandler("analytics", analytics_command))
