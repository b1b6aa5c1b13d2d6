"""Telegram Mini App API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MiniAppError → structured JSON responses
    - Database initialized and schema bootstrapped on startup via lifespan
    - A missing bot token is logged at startup; verification then rejects every payload

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Static assets mounted only when the directory exists (API-only deployments)
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from miniapp.api.error_handlers import register_error_handlers
from miniapp.api.routes import health, telegram
from miniapp.config import get_settings
from miniapp.infrastructure.database import init_db
from miniapp.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if not settings.telegram_bot_token:
        logger.error("TELEGRAM_BOT_TOKEN is not set; all launch data will be rejected")

    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if await manager.bootstrap_schema():
        logger.info("Database already initialized, skipping init")
    else:
        logger.info("Database initialized")

    logger.info("Mini app API started")
    yield
    logger.info("Mini app API shutting down")
    await manager.dispose()


app = FastAPI(
    title="Telegram Mini App API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(health.router)
app.include_router(telegram.router)
register_error_handlers(app)

# Web app shell — load.html at /, assets under /static
if os.path.isdir(settings.static_dir):
    app.mount(
        "/static", StaticFiles(directory=settings.static_dir), name="static",
    )

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(os.path.join(settings.static_dir, "load.html"))


def run() -> None:
    uvicorn.run(
        "miniapp.main:app",
        host=settings.bot_host,
        port=settings.bot_lport,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
