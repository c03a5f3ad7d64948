#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - JSON File Store
One JSON document per user with an in-memory cache

Every write replaces the whole user record. Writes go through a temporary
file that is parsed back before it replaces the previous version.
"""

import json
import shutil
import logging
import threading
import weakref
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Any

from core.exceptions import PersistenceError, ValidationError
from core.models import UserRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """Interface shared by the record stores"""

    def get(self, user_id: int) -> Optional[UserRecord]:
        raise NotImplementedError

    def put(self, record: UserRecord) -> None:
        raise NotImplementedError

    def user_ids(self) -> List[int]:
        raise NotImplementedError

    def transaction(self, user_id: int):
        """Context manager yielding the user's record; persisted on normal exit"""
        raise NotImplementedError

    def get_or_create(self, user_id: int) -> UserRecord:
        return self.get(user_id) or UserRecord(user_id=user_id)

    def ping(self) -> bool:
        """Whether the backing storage is reachable"""
        raise NotImplementedError

    def get_stats(self) -> Dict[str, Any]:
        raise NotImplementedError

    def close(self) -> None:
        pass


class JsonFileStore(RecordStore):
    """Record store backed by ``<data_dir>/user_<id>.json`` files"""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._cache: Dict[int, Dict[str, Any]] = {}
        self._cache_lock = threading.RLock()
        # entries vanish once no transaction holds the lock
        self._user_locks = weakref.WeakValueDictionary()

        self.save_count = 0
        self.load_count = 0

    # ===== FILES =====

    def _user_file(self, user_id: int) -> Path:
        return self.data_dir / f"user_{user_id}.json"

    def _load_sync(self, user_id: int) -> Optional[Dict[str, Any]]:
        path = self._user_file(user_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"User file {path} is corrupted: {e}")
            raise PersistenceError(f"Corrupted record for user {user_id}", user_id=user_id)
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise PersistenceError(f"Could not read record for user {user_id}: {e}", user_id=user_id)

        self.load_count += 1
        return data

    def _save_sync(self, user_id: int, data: Dict[str, Any]) -> None:
        path = self._user_file(user_id)
        temp_file = path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)

            with open(temp_file, "r", encoding="utf-8") as f:
                json.load(f)

            shutil.move(str(temp_file), str(path))
            self.save_count += 1

        except (OSError, ValueError) as e:
            if temp_file.exists():
                temp_file.unlink()
            logger.error(f"Failed to save record of user {user_id}: {e}")
            raise PersistenceError(f"Could not save record for user {user_id}: {e}", user_id=user_id)

    def _lock_for(self, user_id: int) -> threading.Lock:
        with self._cache_lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = self._user_locks[user_id] = threading.Lock()
            return lock

    # ===== PUBLIC API =====

    def get(self, user_id: int) -> Optional[UserRecord]:
        with self._cache_lock:
            data = self._cache.get(user_id)

        if data is None:
            data = self._load_sync(user_id)
            if data is None:
                return None
            with self._cache_lock:
                self._cache[user_id] = data

        try:
            return UserRecord.from_dict(data)
        except ValidationError as e:
            raise PersistenceError(str(e), user_id=user_id)

    def put(self, record: UserRecord) -> None:
        data = record.to_dict()
        self._save_sync(record.user_id, data)
        with self._cache_lock:
            self._cache[record.user_id] = data

    def user_ids(self) -> List[int]:
        ids = set()
        for path in self.data_dir.glob("user_*.json"):
            try:
                ids.add(int(path.stem[len("user_"):]))
            except ValueError:
                logger.warning(f"Ignoring unexpected file {path.name}")
        with self._cache_lock:
            ids.update(self._cache)
        return sorted(ids)

    @contextmanager
    def transaction(self, user_id: int) -> Iterator[UserRecord]:
        """Serialize read-modify-write cycles on one user's record.

        The record is only written back when the block exits normally, so a
        failed check-in or schedule update leaves the stored record untouched.
        """
        with self._lock_for(user_id):
            record = self.get_or_create(user_id)
            yield record
            self.put(record)

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def ping(self) -> bool:
        return self.data_dir.is_dir()

    def get_stats(self) -> Dict[str, Any]:
        with self._cache_lock:
            cached = len(self._cache)
        return {
            "backend": "json",
            "data_dir": str(self.data_dir),
            "cached_users": cached,
            "save_count": self.save_count,
            "load_count": self.load_count,
        }


__all__ = ['RecordStore', 'JsonFileStore']
