from typing import List, Optional

from core.achievements import badge_label, next_milestone
from core.history import HistorySummary
from core.models import Habit, CheckOutcome, UserRecord
from core.schedule import describe


def welcome_message(first_name: Optional[str]):
    return (
        f"Hi, {first_name or 'friend'}! 👋\n"
        "I will remind you about your habits and keep track of your streaks.\n\n"
        "/newhabit <name> - add a habit\n"
        "/myhabits - list your habits\n"
        "/check - check in on today's habits\n"
        "/schedule <n> <schedule> - change a reminder\n"
        "/timezone <Area/City> - set your time zone\n"
        "/analytics - history and statistics"
    )


def schedule_text(habit: Habit, user_timezone: str, default_hour: int, default_minute: int) -> str:
    if habit.reminder_schedule:
        return describe(habit.reminder_schedule)
    return f"Every day at {default_hour:02d}:{default_minute:02d} {user_timezone} (default)"


def habits_list_message(record: Optional[UserRecord], default_hour: int = 22, default_minute: int = 0):
    if record is None or not record.habits:
        return "You have no habits yet. Add one with /newhabit <name>"

    lines = ["<b>Your habits:</b>"]
    for idx, habit in enumerate(record.habits, 1):
        flags = []
        if habit.disabled:
            flags.append("disabled")
        elif not habit.reminder_enabled:
            flags.append("reminders off")
        suffix = f" [{', '.join(flags)}]" if flags else ""

        lines.append(f"{idx}. {habit.name} - {habit.streak}🔥{suffix}")
        lines.append(f"   ⏰ {schedule_text(habit, record.timezone, default_hour, default_minute)}")
        if habit.badges:
            lines.append("   " + " ".join(badge_label(b.milestone) for b in habit.badges))
    return "\n".join(lines)


def check_prompt(habit: Habit, reminder: bool = False) -> str:
    prefix = "⏰ Reminder: " if reminder else ""
    return f'{prefix}Did you "{habit.name}" today?'


def check_result_message(habit: Habit, outcome: CheckOutcome, changed: bool,
                         new_badges: List[int]) -> str:
    if not changed:
        return f'"{habit.name}" is already checked for today.'

    if outcome == CheckOutcome.COMPLETED:
        text = f'✅ "{habit.name}" done! Streak: {habit.streak} 🔥'
        upcoming = next_milestone(habit.streak)
        if upcoming:
            text += f"\n{upcoming - habit.streak} more to reach {badge_label(upcoming)}"
    elif outcome == CheckOutcome.DROPPED:
        text = f'❌ Streak for "{habit.name}" dropped. Tomorrow is a new start! 💪'
    else:
        text = f'⏭️ Skipped "{habit.name}" today. Your streak of {habit.streak} days is preserved! 💪'

    for milestone in new_badges:
        text += f"\n\n🎉 New badge: {badge_label(milestone)}"
    return text


def analytics_message(habit: Habit, summary: HistorySummary) -> str:
    return (
        f"📊 <b>{habit.name}</b>\n"
        f"Current streak: {summary.current_streak} 🔥\n"
        f"Longest streak: {summary.longest_streak}\n"
        f"Completed: {summary.completed} | Skipped: {summary.skipped} | Dropped: {summary.dropped}\n"
        f"Completion rate: {summary.completion_rate:.0%} over {summary.tracked_days} days"
    )


def consent_message() -> str:
    return (
        "📋 <b>Privacy Policy & Terms of Service</b>\n\n"
        "Before you start, please review how your data is used:\n\n"
        "🔒 We store your habits (names, streaks, check-in dates) and your time zone.\n"
        "📱 The data is used only to send reminders and track your progress, "
        "and it is never shared with third parties.\n"
        "⚙️ You can delete your habits or stop using the bot at any time.\n\n"
        'Press "✅ I Accept" to agree.'
    )


CONSENT_ACCEPTED = (
    "✅ Thank you for accepting our Privacy Policy and Terms of Service!\n"
    "Set your time zone with /timezone <Area/City> so reminders arrive on time."
)

CONSENT_DECLINED = (
    "❌ Consent declined.\n"
    "The bot cannot track your habits without your consent. "
    "If you change your mind, send /start again."
)
