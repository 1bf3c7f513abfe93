import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifeos import database
from lifeos.config import Settings, get_settings
from lifeos.features.celebrations import TaskCelebration
from lifeos.features.notifications import (
    BrowserNotificationBridge,
    NotificationDispatcher,
    NotificationStore,
    ToastPresenter,
    build_platform,
)
from lifeos.features.reminders import ReminderScheduler, RemoteTaskSource
from lifeos.logging import RequestLoggingMiddleware, init_logging
from lifeos.routes import router
from lifeos.utils.dates import resolve_timezone

logger = logging.getLogger("main")


def build_services(app: FastAPI, settings: Settings) -> None:
    """Wire the notification stack onto app.state."""
    tz = resolve_timezone(settings.reminder_timezone)

    store = NotificationStore(max_notifications=settings.max_notifications)
    toasts = ToastPresenter(ttl_seconds=settings.toast_ttl_seconds, max_pending=settings.toast_max_pending)
    bridge = BrowserNotificationBridge(
        build_platform(settings.notification_platform, push_url=settings.push_url, push_token=settings.push_token),
        default_icon=settings.notification_icon,
    )
    dispatcher = NotificationDispatcher(store, toasts, bridge)
    task_source = RemoteTaskSource(
        settings.task_api_base_url,
        token=settings.task_api_token,
        timeout=settings.task_api_timeout_seconds,
    )

    app.state.store = store
    app.state.toasts = toasts
    app.state.bridge = bridge
    app.state.reminders = ReminderScheduler(
        dispatcher,
        task_source,
        tz=tz,
        task_interval=timedelta(minutes=settings.task_check_interval_minutes),
        reminder_interval=timedelta(seconds=settings.reminder_check_interval_seconds),
        dedupe_per_day=settings.reminder_dedupe_per_day,
    )
    app.state.celebration = TaskCelebration(dispatcher, tz=tz)


# ---------------------------------------------------------------------------
# App lifespan (startup/shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown tasks."""
    settings = get_settings()
    init_logging()
    logger.info("Startup: initializing database...")
    try:
        await database.init_db_async()
        logger.info("Connected to database: %s", database.get_database_dsn())
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        raise  # no storage, no app

    build_services(app, settings)

    if settings.reminders_enabled:
        logger.info("Startup: starting reminder scheduler...")
        try:
            await app.state.bridge.request_permission()
            await app.state.reminders.init()
        except Exception as e:
            logger.error("Failed to start reminder scheduler: %s", e)
    else:
        logger.info("Reminder scheduler disabled (REMINDERS_ENABLED is false)")

    yield  # app runs during this block

    app.state.reminders.cleanup()

    logger.info("Shutdown: closing database connection pool...")
    try:
        await database.shutdown_db_async()
        logger.info("Cleanup complete.")
    except Exception as e:
        logger.error("Error during shutdown cleanup: %s", e)


# ---------------------------------------------------------------------------
# FastAPI Application
# ---------------------------------------------------------------------------
app = FastAPI(
    title="LifeOS - Reminders & Notifications",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Base Routes
# ---------------------------------------------------------------------------

@app.get("/", tags=["Health"])
async def root():
    """Basic health check to verify the service is running."""
    return {"status": "ok", "message": "LifeOS notifications are running."}


app.include_router(router)
