from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App environment
    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database (local durable storage for the notification center and preferences)
    database_url: str = Field(default="sqlite+aiosqlite:///./lifeos.db", alias="DATABASE_URL")

    # Logging configuration used by lifeos.logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    console_log_level: str = Field(default="INFO", alias="CONSOLE_LOG_LEVEL")

    # Remote task API polled by the reminder scheduler
    task_api_base_url: str = Field(default="http://localhost:5000", alias="TASK_API_BASE_URL")
    task_api_token: Optional[str] = Field(default=None, alias="TASK_API_TOKEN")
    task_api_timeout_seconds: float = Field(default=10.0, alias="TASK_API_TIMEOUT_SECONDS")

    # Reminder settings
    reminders_enabled: bool = Field(default=True, alias="REMINDERS_ENABLED")
    reminder_timezone: str = Field(default="UTC", alias="REMINDER_TIMEZONE")  # "today", HH:00 and quiet hours
    task_check_interval_minutes: int = Field(default=60, alias="TASK_CHECK_INTERVAL_MINUTES")
    reminder_check_interval_seconds: int = Field(default=60, alias="REMINDER_CHECK_INTERVAL_SECONDS")
    reminder_dedupe_per_day: bool = Field(default=False, alias="REMINDER_DEDUPE_PER_DAY")

    # Notification center / toasts
    max_notifications: int = Field(default=100, alias="MAX_NOTIFICATIONS")
    toast_ttl_seconds: int = Field(default=15, alias="TOAST_TTL_SECONDS")
    toast_max_pending: int = Field(default=50, alias="TOAST_MAX_PENDING")

    # Native notifications
    # desktop -> plyer, webhook -> POST to PUSH_URL, none -> no capability
    notification_platform: str = Field(default="desktop", alias="NOTIFICATION_PLATFORM")
    push_url: Optional[str] = Field(default=None, alias="PUSH_URL")
    push_token: Optional[str] = Field(default=None, alias="PUSH_TOKEN")
    notification_icon: str = Field(default="/favicon.ico", alias="NOTIFICATION_ICON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
