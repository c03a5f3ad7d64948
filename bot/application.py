import asyncio
import logging

from telegram.error import Conflict, TimedOut, NetworkError, TelegramError
from telegram.ext import Application, ApplicationBuilder, ContextTypes

from config import BotConfig
from handlers.router import register_handlers
from services.habit_service import HabitService

logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """Log update errors; transient network problems are only warnings"""
    error = context.error

    if isinstance(error, Conflict):
        logger.error(f"Error while getting Updates: {error}")
        logger.warning("⚠️ getUpdates conflict, clearing webhook...")
        await asyncio.sleep(5)
        try:
            await context.bot.delete_webhook(drop_pending_updates=True)
            logger.info("🔄 Webhook cleared after conflict")
        except TelegramError as e:
            logger.error(f"Failed to clear webhook: {e}")
    elif isinstance(error, (TimedOut, NetworkError)):
        logger.warning(f"⚠️ Temporary network error: {error}")
    else:
        logger.error(f"❌ Unexpected error: {error}", exc_info=error)

        effective_user = getattr(update, "effective_user", None)
        if effective_user:
            try:
                if update.message:
                    await update.message.reply_text("⚠️ Something went wrong. Please try again in a few seconds.")
                elif update.callback_query:
                    await update.callback_query.answer("⚠️ Temporary error. Please try again.")
            except TelegramError as e:
                logger.warning(f"Could not notify user {effective_user.id} about the error: {e}")


def build_application(bot_config: BotConfig, habit_service: HabitService) -> Application:
    application = (
        ApplicationBuilder()
        .token(bot_config.require_bot_token())
        .connect_timeout(bot_config.telegram.connect_timeout)
        .read_timeout(bot_config.telegram.read_timeout)
        .concurrent_updates(True)
        .build()
    )

    application.bot_data["habit_service"] = habit_service
    application.bot_data["default_reminder"] = (
        bot_config.scheduler.default_reminder_hour,
        bot_config.scheduler.default_reminder_minute,
    )

    register_handlers(application)
    application.add_error_handler(error_handler)

    total_handlers = sum(len(handlers) for handlers in application.handlers.values())
    logger.info(f"✅ {total_handlers} handlers registered")
    return application
