"""
Notification store: the notification center entries and the user's notification preferences.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from lifeos import crud
from lifeos.schemas import NotificationOut, NotificationSettings, NotificationType

logger = logging.getLogger("notification_store")

SETTINGS_KEY = "notification_settings"
DEFAULT_MAX_NOTIFICATIONS = 100

# Preference flags that gate an outbound notification
CATEGORY_FLAGS = {
    NotificationType.task_due: "task_due_reminders",
    NotificationType.task_overdue: "task_overdue_alerts",
    NotificationType.health_reminder: "health_reminders",
    NotificationType.weekly_planning: "weekly_planning_reminders",
    NotificationType.daily_reflection: "daily_reflection_prompts",
    NotificationType.task_completed: "task_completion_celebrations",
}
BROWSER_FLAG = "browser_notifications"


def merge_settings(stored: Optional[Dict[str, Any]]) -> NotificationSettings:
    """Overlay stored values on the defaults, dropping fields that fail validation."""
    defaults = NotificationSettings().model_dump()
    if not stored:
        return NotificationSettings(**defaults)
    merged = {**defaults, **{k: v for k, v in stored.items() if k in defaults}}
    try:
        return NotificationSettings(**merged)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err.get("loc")}
        logger.warning("Ignoring invalid stored notification settings: %s", sorted(map(str, bad)))
        return NotificationSettings(**{k: (defaults[k] if k in bad else v) for k, v in merged.items()})


def in_quiet_hours(settings: NotificationSettings, now: datetime) -> bool:
    """Whether `now` (local wall clock) falls in the quiet-hours window. Both ends inclusive."""
    current = now.strftime("%H:%M")
    start = settings.quiet_hours_start
    end = settings.quiet_hours_end

    # Overnight window, e.g. 22:00 to 08:00
    if start > end:
        return current >= start or current <= end
    return start <= current <= end


class NotificationStore:
    def __init__(self, *, max_notifications: int = DEFAULT_MAX_NOTIFICATIONS):
        self.max_notifications = max_notifications
        self._settings: Optional[NotificationSettings] = None

    # ============= Settings Management =============

    async def get_settings(self) -> NotificationSettings:
        if self._settings is None:
            try:
                stored = await crud.get_setting(SETTINGS_KEY)
            except Exception as e:
                logger.error("Failed to load notification settings: %s", e)
                return NotificationSettings()
            self._settings = merge_settings(stored)
        return self._settings

    async def save_settings(self, settings: NotificationSettings) -> NotificationSettings:
        await crud.put_setting(SETTINGS_KEY, settings.model_dump())
        self._settings = settings
        return settings

    async def update_settings(self, **changes: Any) -> NotificationSettings:
        current = await self.get_settings()
        updated = NotificationSettings(**{**current.model_dump(), **changes})
        return await self.save_settings(updated)

    def invalidate(self) -> None:
        """Drop the cached settings so the next read goes to storage."""
        self._settings = None

    async def is_enabled(self, flag: str) -> bool:
        settings = await self.get_settings()
        return bool(getattr(settings, flag))

    async def is_do_not_disturb(self, now: datetime) -> bool:
        settings = await self.get_settings()
        if not settings.do_not_disturb:
            return False
        return in_quiet_hours(settings, now)

    async def should_notify(self, flag: str, now: datetime) -> bool:
        if await self.is_do_not_disturb(now):
            return False
        return await self.is_enabled(flag)

    # ============= Notification Center =============

    async def add_notification(
        self,
        type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
    ) -> NotificationOut:
        row = await crud.create_notification(
            type.value,
            title,
            message,
            link,
            max_notifications=self.max_notifications,
        )
        return NotificationOut.model_validate(row)

    async def get_notifications(
        self,
        *,
        unread_only: bool = False,
        type: Optional[NotificationType] = None,
    ) -> List[NotificationOut]:
        rows = await crud.get_notifications(unread_only=unread_only, type=type.value if type else None)
        return [NotificationOut.model_validate(r) for r in rows]

    async def mark_as_read(self, notification_id: str) -> Optional[NotificationOut]:
        row = await crud.set_notification_read(notification_id, True)
        return NotificationOut.model_validate(row) if row else None

    async def mark_as_unread(self, notification_id: str) -> Optional[NotificationOut]:
        row = await crud.set_notification_read(notification_id, False)
        return NotificationOut.model_validate(row) if row else None

    async def mark_all_as_read(self) -> int:
        return await crud.mark_all_notifications_read()

    async def delete_notification(self, notification_id: str) -> bool:
        return await crud.delete_notification(notification_id)

    async def clear_all_notifications(self) -> int:
        return await crud.delete_all_notifications()

    async def get_unread_count(self) -> int:
        return await crud.count_unread_notifications()
