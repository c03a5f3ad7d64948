#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Redis Store
Key-value record store for deployments that share state between processes

Layout:
    user:<id>:habits   JSON user record (habits and preferences)
    active_users       set of user ids with a record
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import redis

from core.exceptions import PersistenceError, ValidationError
from core.models import UserRecord
from database.manager import RecordStore

logger = logging.getLogger(__name__)

ACTIVE_USERS_KEY = "active_users"


def user_key(user_id: int) -> str:
    return f"user:{user_id}:habits"


def lock_key(user_id: int) -> str:
    return f"lock:user:{user_id}"


class RedisStore(RecordStore):
    """Record store on a Redis server; per-user writes are serialized by a Redis lock"""

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None,
                 lock_timeout: float = 10.0, blocking_timeout: float = 5.0):
        if client is None:
            if not url:
                raise PersistenceError("REDIS_URL is required for the redis store")
            client = redis.Redis.from_url(url, encoding="utf-8", decode_responses=True)

        self.client = client
        self.lock_timeout = lock_timeout
        self.blocking_timeout = blocking_timeout

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis is not reachable: {e}")
            return False

    def get(self, user_id: int) -> Optional[UserRecord]:
        try:
            raw = self.client.get(user_key(user_id))
        except redis.RedisError as e:
            logger.error(f"Failed to read record of user {user_id}: {e}")
            raise PersistenceError(f"Could not read record for user {user_id}: {e}", user_id=user_id)

        if raw is None:
            return None

        try:
            return UserRecord.from_dict(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Corrupted record of user {user_id}: {e}")
            raise PersistenceError(f"Corrupted record for user {user_id}", user_id=user_id)

    def put(self, record: UserRecord) -> None:
        payload = json.dumps(record.to_dict(), ensure_ascii=False)
        try:
            pipe = self.client.pipeline()
            pipe.set(user_key(record.user_id), payload)
            pipe.sadd(ACTIVE_USERS_KEY, record.user_id)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Failed to save record of user {record.user_id}: {e}")
            raise PersistenceError(
                f"Could not save record for user {record.user_id}: {e}", user_id=record.user_id
            )

    def user_ids(self) -> List[int]:
        try:
            members = self.client.smembers(ACTIVE_USERS_KEY)
        except redis.RedisError as e:
            logger.error(f"Failed to list users: {e}")
            raise PersistenceError(f"Could not list users: {e}")
        return sorted(int(m) for m in members)

    @contextmanager
    def transaction(self, user_id: int) -> Iterator[UserRecord]:
        lock = self.client.lock(
            lock_key(user_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.blocking_timeout,
        )
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            raise PersistenceError(f"Could not lock record of user {user_id}: {e}", user_id=user_id)
        if not acquired:
            raise PersistenceError(f"Record of user {user_id} is locked by another writer", user_id=user_id)

        try:
            record = self.get_or_create(user_id)
            yield record
            self.put(record)
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                logger.warning(f"Lock of user {user_id} expired before release")

    def close(self) -> None:
        self.client.close()

    def get_stats(self) -> Dict[str, Any]:
        return {"backend": "redis", "users": len(self.user_ids())}


__all__ = ['RedisStore', 'user_key', 'ACTIVE_USERS_KEY']
