#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Entry point
Telegram bot that tracks daily habits, streaks and scheduled reminders
"""

import asyncio
import logging
import logging.config
import signal
import sys
from typing import Optional

from telegram.ext import Application

from bot.application import build_application
from config import BotConfig, config
from database.factory import create_store
from database.manager import RecordStore
from services.habit_service import HabitService
from services.notifications import NotificationService
from services.reminder_service import ReminderService

logging.config.dictConfig(config.get_logging_config())
logger = logging.getLogger(__name__)


class HabitStreakBot:
    """Wires the store, the services and the Telegram application together"""

    def __init__(self, bot_config: BotConfig):
        self.config = bot_config

        logger.info("🚀 Starting Habit Streak Bot...")
        logger.info(f"Python: {sys.version}")
        logger.info(f"Environment: {bot_config.environment.value}")
        logger.info(f"📂 Record store: {bot_config.store.backend.value}")

        self.store: RecordStore = create_store(bot_config.store)
        self.habit_service = HabitService(self.store)
        self.reminder_service = ReminderService(
            self.store,
            max_workers=bot_config.max_workers,
            default_hour=bot_config.scheduler.default_reminder_hour,
            default_minute=bot_config.scheduler.default_reminder_minute,
        )

        self.application: Optional[Application] = None
        self.notifications: Optional[NotificationService] = None
        self._stopped = False

    async def setup_bot(self):
        """Build the Telegram application and clear any stale webhook"""
        self.application = build_application(self.config, self.habit_service)
        self.notifications = NotificationService(
            self.application.bot,
            self.habit_service,
            self.reminder_service,
            tick_seconds=self.config.scheduler.tick_seconds,
        )
        self.application.bot_data["notifications"] = self.notifications

        await self.application.bot.delete_webhook(drop_pending_updates=True)
        logger.info("✅ Bot configured")

    async def start_polling(self, stop_event: asyncio.Event):
        """Poll for updates until ``stop_event`` is set"""
        logger.info("🎯 Starting polling...")

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling(
            drop_pending_updates=True,
            allowed_updates=['message', 'callback_query'],
        )
        self.notifications.start()

        logger.info("✅ Polling started")
        logger.info("📱 Open the bot in Telegram and send /start")

        await stop_event.wait()

    async def stop(self):
        if self._stopped:
            return
        self._stopped = True

        if self.notifications:
            self.notifications.shutdown()

        if self.application:
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            if self.application.running:
                await self.application.stop()
            await self.application.shutdown()

        self.store.close()
        logger.info("🛑 Bot stopped")

# ===== MAIN =====

async def main():
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(signum):
        logger.info(f"📢 Received signal {signum}, shutting down...")
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, signal_handler, signum)

    bot = HabitStreakBot(config)
    try:
        await bot.setup_bot()
        await bot.start_polling(stop_event)
    finally:
        await bot.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("👋 Bot stopped by user")
    except ValueError as e:
        logger.error(f"❌ Configuration error: {e}")
        sys.exit(1)
