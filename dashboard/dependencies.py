#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - API Dependencies
Service singletons and request guards for the FastAPI application
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request, status
from telegram import Bot

from config import BotConfig, config
from database.factory import create_store
from database.manager import RecordStore
from services.habit_service import HabitService
from services.notifications import NotificationService
from services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

# ===== SINGLETONS =====

_store: Optional[RecordStore] = None
_habit_service: Optional[HabitService] = None
_notification_service: Optional[NotificationService] = None
_bot: Optional[Bot] = None

# ===== INITIALIZATION =====

async def init_services(bot_config: BotConfig = config) -> None:
    """Build the store, the services and a bot used only for sending"""
    global _store, _habit_service, _notification_service, _bot

    if _habit_service is not None:
        return

    logger.info("🔄 Initializing services...")
    _store = create_store(bot_config.store)
    _habit_service = HabitService(_store)

    reminder_service = ReminderService(
        _store,
        max_workers=bot_config.max_workers,
        default_hour=bot_config.scheduler.default_reminder_hour,
        default_minute=bot_config.scheduler.default_reminder_minute,
    )

    if bot_config.telegram.bot_token:
        _bot = Bot(bot_config.require_bot_token())
        await _bot.initialize()
        _notification_service = NotificationService(_bot, _habit_service, reminder_service)
    else:
        logger.warning("⚠️ BOT_TOKEN is not set, /api/reminders is unavailable")

    logger.info("✅ Services initialized")


async def cleanup_resources() -> None:
    global _store, _habit_service, _notification_service, _bot

    logger.info("🧹 Releasing resources...")
    if _bot is not None:
        await _bot.shutdown()
    if _store is not None:
        _store.close()

    _store = _habit_service = _notification_service = _bot = None

# ===== PROVIDERS =====

def get_store() -> Optional[RecordStore]:
    """Record store, or None before startup"""
    return _store


def get_habit_service() -> HabitService:
    if _habit_service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Service is starting")
    return _habit_service


def get_notification_service() -> NotificationService:
    if _notification_service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Reminder delivery is not configured")
    return _notification_service


def get_cron_secret() -> Optional[str]:
    return config.server.cron_secret

# ===== GUARDS =====

def verify_cron_secret(
    request: Request,
    secret: Optional[str] = Query(None),
    expected: Optional[str] = Depends(get_cron_secret),
) -> None:
    """Require the shared secret when CRON_SECRET is configured"""
    if not expected:
        return

    provided = request.headers.get("X-Cron-Secret") or secret
    if not provided or not secrets.compare_digest(provided, expected):
        logger.warning(f"Rejected reminder trigger from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
