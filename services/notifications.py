"""
Notification service: periodic reminder tick and check-in prompt delivery
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from telegram.error import Forbidden, TelegramError

from core.exceptions import HabitError
from core.models import Habit
from services.habit_service import HabitService
from services.reminder_service import ReminderService, DueHabit, group_by_user
from ui.keyboards import habit_check_keyboard
from ui.messages import check_prompt
from utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "habit_reminders"


@dataclass
class DeliveryReport:
    """Counters of one delivery round"""
    due: int = 0
    sent: int = 0
    skipped_blocked: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "due": self.due,
            "sent": self.sent,
            "skippedBlocked": self.skipped_blocked,
            "errors": self.errors,
        }


class NotificationService:
    """Sends due habit prompts through the Telegram bot"""

    def __init__(self, bot, habit_service: HabitService, reminder_service: ReminderService,
                 tick_seconds: int = 60, clock: Callable[[], datetime] = now_utc):
        self.bot = bot
        self.habit_service = habit_service
        self.reminder_service = reminder_service
        self.tick_seconds = tick_seconds
        self.clock = clock
        self.scheduler: Optional[AsyncIOScheduler] = None

    # ===== DELIVERY =====

    async def send_habit_prompt(self, user_id: int, habit: Habit, reminder: bool = True) -> None:
        await self.bot.send_message(
            chat_id=user_id,
            text=check_prompt(habit, reminder=reminder),
            reply_markup=habit_check_keyboard(habit),
        )

    def _is_blocked(self, user_id: int) -> bool:
        record = self.habit_service.store.get(user_id)
        return bool(record and record.preferences.blocked)

    async def deliver(self, due: List[DueHabit]) -> DeliveryReport:
        """Send one prompt per due habit; a failing user does not stop the others"""
        report = DeliveryReport(due=len(due))

        for user_id, habits in group_by_user(due).items():
            try:
                if self._is_blocked(user_id):
                    report.skipped_blocked += len(habits)
                    logger.info(f"Skipping reminders for blocked user {user_id}")
                    continue

                for habit in habits:
                    await self.send_habit_prompt(user_id, habit)
                    report.sent += 1
                    logger.info(f"📤 Reminder sent to user {user_id}: {habit.name}")

            except Forbidden as e:
                logger.warning(f"User {user_id} blocked the bot: {e}")
                report.errors.append({"userId": user_id, "error": "blocked"})
                try:
                    self.habit_service.set_blocked(user_id, True)
                except HabitError as store_error:
                    logger.error(f"Failed to mark user {user_id} as blocked: {store_error}")

            except (TelegramError, HabitError) as e:
                logger.error(f"❌ Failed to send reminders to user {user_id}: {e}")
                report.errors.append({"userId": user_id, "error": str(e)})

        return report

    async def run_tick(self, instant: Optional[datetime] = None) -> Dict[str, Any]:
        """Select due habits at ``instant`` and deliver their prompts"""
        instant = instant or self.clock()

        loop = asyncio.get_running_loop()
        selection = await loop.run_in_executor(None, self.reminder_service.select, instant)

        report = await self.deliver(selection.due)
        report.errors = [e.to_dict() for e in selection.errors] + report.errors

        if report.due:
            logger.info(
                f"Reminder tick {instant.isoformat()}: due={report.due} sent={report.sent} "
                f"errors={len(report.errors)}"
            )
        return report.to_dict()

    # ===== SCHEDULING =====

    def start(self) -> None:
        """Run the reminder tick on an APScheduler job"""
        if self.scheduler and self.scheduler.running:
            return

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        if self.tick_seconds == 60:
            # evaluation is exact to the minute, fire at second 0
            trigger = CronTrigger(second=0, timezone="UTC")
        else:
            trigger = IntervalTrigger(seconds=self.tick_seconds)

        self.scheduler.add_job(
            self.run_tick,
            trigger,
            id=REMINDER_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("📅 Reminder scheduler started")

    def shutdown(self) -> None:
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("📅 Reminder scheduler stopped")


__all__ = ['NotificationService', 'DeliveryReport', 'REMINDER_JOB_ID']
