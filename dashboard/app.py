#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - HTTP API
Reminder trigger for an external cron, habit analytics and a health check
"""

import logging
import logging.config
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from config import config
from core.exceptions import PersistenceError
from dashboard.api import analytics, reminders
from dashboard.dependencies import init_services, cleanup_resources, get_store
from database.manager import RecordStore
from shared.models import HealthCheck

SERVICE_NAME = "habit-streak-bot"
VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Habit Streak API...")
    await init_services(config)
    logger.info(f"🌐 API available on http://{config.server.host}:{config.server.port}")

    yield

    logger.info("🛑 Stopping Habit Streak API...")
    await cleanup_resources()


app = FastAPI(
    title="Habit Streak Bot API",
    description="Reminder trigger and streak analytics for the Telegram habit bot",
    version=VERSION,
    docs_url="/api/docs" if config.server.debug_mode else None,
    redoc_url=None,
    openapi_url="/api/openapi.json" if config.server.debug_mode else None,
    lifespan=lifespan
)

# ===== MIDDLEWARE =====

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} "
        f"- {response.status_code} "
        f"- {process_time:.3f}s"
    )
    response.headers["X-Process-Time"] = f"{process_time:.3f}"
    return response

# ===== ROUTES =====

app.include_router(reminders.router)
app.include_router(analytics.router)


@app.get("/health", response_model=HealthCheck)
async def health_check(store: Optional[RecordStore] = Depends(get_store)):
    """Liveness and storage check for the hosting platform"""
    data = None
    if store is not None:
        try:
            if not store.ping():
                raise PersistenceError("Storage is not reachable")
            data = store.get_stats()
        except PersistenceError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "service": SERVICE_NAME,
                    "version": VERSION,
                    "timestamp": time.time(),
                    "data": {"error": str(e)},
                },
            )

    return HealthCheck(
        status="healthy",
        service=SERVICE_NAME,
        version=VERSION,
        timestamp=time.time(),
        data=data,
    )


if __name__ == "__main__":
    logging.config.dictConfig(config.get_logging_config())
    uvicorn.run(
        "dashboard.app:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.is_development(),
        log_config=None,
    )
