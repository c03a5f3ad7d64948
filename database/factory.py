#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Store Factory
"""

import logging

from config import StoreConfig, StoreBackend
from database.manager import RecordStore, JsonFileStore
from database.redis_store import RedisStore

logger = logging.getLogger(__name__)


def create_store(store_config: StoreConfig) -> RecordStore:
    """Build the record store selected by STORE_BACKEND"""
    if store_config.backend == StoreBackend.REDIS:
        logger.info("🔄 Using Redis record store")
        return RedisStore(
            url=store_config.redis_url,
            lock_timeout=store_config.lock_timeout_seconds,
            blocking_timeout=store_config.lock_wait_seconds,
        )

    logger.info(f"📂 Using JSON record store in {store_config.data_dir}")
    return JsonFileStore(store_config.data_dir)


__all__ = ['create_store']
