#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Configuration
Centralized configuration read from environment variables
"""

import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum

class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"

class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class StoreBackend(Enum):
    """Record store implementations"""
    JSON = "json"
    REDIS = "redis"

@dataclass
class TelegramConfig:
    """Telegram bot settings"""
    bot_token: Optional[str]
    connect_timeout: float = 10.0
    read_timeout: float = 20.0

@dataclass
class StoreConfig:
    """Record store settings"""
    backend: StoreBackend
    data_dir: Path
    redis_url: Optional[str] = None
    lock_timeout_seconds: float = 10.0
    lock_wait_seconds: float = 5.0

@dataclass
class SchedulerConfig:
    """Reminder scheduling settings"""
    default_reminder_hour: int = 22
    default_reminder_minute: int = 0
    tick_seconds: int = 60

@dataclass
class ServerConfig:
    """HTTP API settings"""
    host: str = "0.0.0.0"
    port: int = 8080
    cron_secret: Optional[str] = None
    debug_mode: bool = False

class BotConfig:
    """Main configuration object"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()
        self._ensure_directories()

    def _load_config(self):
        """Read settings from environment variables"""

        self.telegram = TelegramConfig(
            bot_token=os.getenv('BOT_TOKEN') or None,
            connect_timeout=float(os.getenv('TELEGRAM_CONNECT_TIMEOUT', 10)),
            read_timeout=float(os.getenv('TELEGRAM_READ_TIMEOUT', 20)),
        )

        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        self.store = StoreConfig(
            backend=StoreBackend(os.getenv('STORE_BACKEND', 'json').lower()),
            data_dir=self.data_dir,
            redis_url=os.getenv('REDIS_URL') or None,
            lock_timeout_seconds=float(os.getenv('STORE_LOCK_TIMEOUT', 10)),
            lock_wait_seconds=float(os.getenv('STORE_LOCK_WAIT', 5)),
        )

        self.scheduler = SchedulerConfig(
            default_reminder_hour=int(os.getenv('DEFAULT_REMINDER_HOUR', 22)),
            default_reminder_minute=int(os.getenv('DEFAULT_REMINDER_MINUTE', 0)),
            tick_seconds=int(os.getenv('REMINDER_TICK_SECONDS', 60)),
        )

        self.server = ServerConfig(
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', 8080)),
            cron_secret=os.getenv('CRON_SECRET') or None,
            debug_mode=os.getenv('DEBUG_MODE', 'false').lower() == 'true',
        )

        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = os.getenv('LOG_TO_FILE', 'false').lower() == 'true'
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

        self.max_workers = int(os.getenv('MAX_WORKERS', 4))

    def _validate_config(self):
        """Check value ranges"""
        errors = []

        if not 0 <= self.scheduler.default_reminder_hour <= 23:
            errors.append("DEFAULT_REMINDER_HOUR must be between 0 and 23")

        if not 0 <= self.scheduler.default_reminder_minute <= 59:
            errors.append("DEFAULT_REMINDER_MINUTE must be between 0 and 59")

        if self.scheduler.tick_seconds <= 0:
            errors.append("REMINDER_TICK_SECONDS must be positive")

        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Port {self.server.port} is outside the allowed range (1024-65535)")

        if self.max_workers < 1:
            errors.append("MAX_WORKERS must be at least 1")

        if self.store.backend == StoreBackend.REDIS and not self.store.redis_url:
            errors.append("REDIS_URL is required when STORE_BACKEND=redis")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def _ensure_directories(self):
        """Create working directories"""
        directories = [self.data_dir]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def require_bot_token(self) -> str:
        """Bot token, only needed once the Telegram application is built"""
        token = self.telegram.bot_token
        if not token:
            raise ValueError("Required environment variable BOT_TOKEN is not set!")
        if ':' not in token:
            raise ValueError("BOT_TOKEN has an invalid format")
        return token

    def get_logging_config(self) -> Dict[str, Any]:
        """dictConfig for the bot and the HTTP API"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        handler_config: Dict[str, Any] = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'stream': sys.stdout
            }
        }
        if self.log_to_file:
            handler_config['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"habits_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        quiet = {'level': 'WARNING', 'handlers': handlers, 'propagate': False}

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': handler_config,
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'httpx': dict(quiet),
                'telegram': dict(quiet),
                'apscheduler': dict(quiet),
                'uvicorn.access': dict(quiet),
            }
        }

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view with secrets hidden"""
        token = self.telegram.bot_token
        return {
            'environment': self.environment.value,
            'telegram': {
                'bot_token': token[:10] + "..." if token else None,
            },
            'store': {
                'backend': self.store.backend.value,
                'data_dir': str(self.store.data_dir),
                'redis': bool(self.store.redis_url),
            },
            'scheduler': {
                'default_reminder': f"{self.scheduler.default_reminder_hour:02d}:"
                                    f"{self.scheduler.default_reminder_minute:02d}",
                'tick_seconds': self.scheduler.tick_seconds,
            },
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'cron_secret': bool(self.server.cron_secret),
            },
            'log_level': self.log_level.value,
            'max_workers': self.max_workers,
        }

# Global configuration instance
config = BotConfig()

__all__ = [
    'Environment', 'LogLevel', 'StoreBackend',
    'TelegramConfig', 'StoreConfig', 'SchedulerConfig', 'ServerConfig',
    'BotConfig', 'config',
]
