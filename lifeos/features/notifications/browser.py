"""
Native notification helpers.

Permission has to be requested before anything is shown; every call degrades to a
no-op when the host has no notification capability.
"""
import asyncio
import logging
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx
from plyer import notification as plyer_notification
from plyer.utils import platform as plyer_platform

logger = logging.getLogger("browser_notifications")

DEFAULT_ICON = "/favicon.ico"


class Permission(str, Enum):
    granted = "granted"
    denied = "denied"
    default = "default"


@dataclass
class NativeNotification:
    title: str
    body: str = ""
    icon: str = DEFAULT_ICON
    badge: str = DEFAULT_ICON
    tag: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    require_interaction: bool = False
    closed: bool = False
    on_click: Optional[Callable[[], None]] = field(default=None, repr=False)

    @property
    def link(self) -> Optional[str]:
        return self.data.get("link")

    def click(self) -> None:
        if self.on_click is not None:
            self.on_click()

    def close(self) -> None:
        self.closed = True


NOTIFICATION_OPTIONS = frozenset(f.name for f in fields(NativeNotification)) - {"title", "closed", "on_click"}


# ---------------------------------------------------------------------------
# Platforms
# ---------------------------------------------------------------------------

class NotificationPlatform:
    """Host notification capability."""

    name = "base"
    supported = True

    def __init__(self) -> None:
        self.permission = Permission.default

    async def prompt(self) -> Permission:
        raise NotImplementedError

    async def display(self, notification: NativeNotification) -> None:
        raise NotImplementedError


class NullPlatform(NotificationPlatform):
    name = "none"
    supported = False


class DesktopPlatform(NotificationPlatform):
    """OS notifications through plyer. Desktops have no prompt, so asking grants."""

    name = "desktop"
    app_name = "LifeOS"

    def __init__(self) -> None:
        super().__init__()
        self.supported = plyer_platform in ("win", "macosx", "linux", "android")

    async def prompt(self) -> Permission:
        return Permission.granted

    async def display(self, notification: NativeNotification) -> None:
        icon = notification.icon if os.path.isfile(notification.icon) else ""
        try:
            await asyncio.to_thread(
                plyer_notification.notify,
                title=notification.title,
                message=notification.body,
                app_name=self.app_name,
                app_icon=icon,
                timeout=0 if notification.require_interaction else 10,
            )
        except NotImplementedError:
            # plyer has no backend on this host after all
            logger.warning("Desktop notifications unavailable on %s", plyer_platform)
            self.supported = False


class WebhookPlatform(NotificationPlatform):
    """Relay notifications as JSON to a push endpoint (e.g. a phone push gateway)."""

    name = "webhook"

    def __init__(self, push_url: Optional[str], token: Optional[str] = None, *, timeout: float = 10) -> None:
        super().__init__()
        self.push_url = push_url
        self.token = token
        self.timeout = timeout
        self.supported = bool(push_url)

    async def prompt(self) -> Permission:
        return Permission.granted if self.push_url else Permission.denied

    async def display(self, notification: NativeNotification) -> None:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        payload = {
            "title": notification.title,
            "body": notification.body,
            "icon": notification.icon,
            "badge": notification.badge,
            "tag": notification.tag,
            "link": notification.link,
            "requireInteraction": notification.require_interaction,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.push_url, json=payload, headers=headers)
            resp.raise_for_status()
            logger.info("Push notification sent (%s)", resp.status_code)


def build_platform(kind: str, *, push_url: Optional[str] = None, push_token: Optional[str] = None) -> NotificationPlatform:
    kind = (kind or "").strip().lower()
    if kind == "desktop":
        return DesktopPlatform()
    if kind == "webhook":
        return WebhookPlatform(push_url, push_token)
    return NullPlatform()


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------

class BrowserNotificationBridge:
    def __init__(
        self,
        platform: NotificationPlatform,
        *,
        default_icon: str = DEFAULT_ICON,
        navigate: Optional[Callable[[str], None]] = None,
        focus: Optional[Callable[[], None]] = None,
    ):
        self.platform = platform
        self.default_icon = default_icon
        self.navigate = navigate
        self.focus = focus

    @property
    def permission(self) -> Permission:
        if not self.platform.supported:
            return Permission.denied
        return self.platform.permission

    async def request_permission(self) -> bool:
        """Return True if native notifications may be shown. Never raises."""
        if not self.platform.supported:
            logger.warning("Host does not support native notifications")
            return False

        if self.platform.permission == Permission.granted:
            return True

        if self.platform.permission != Permission.denied:
            try:
                self.platform.permission = await self.platform.prompt()
            except Exception as e:
                logger.error("Notification permission prompt failed: %s", e)
                return False
            return self.platform.permission == Permission.granted

        return False

    async def show(self, title: str, **options: Any) -> Optional[NativeNotification]:
        """Show a native notification; None unless permission was already granted."""
        if self.permission != Permission.granted:
            return None

        unknown = set(options) - NOTIFICATION_OPTIONS
        if unknown:
            logger.warning("Ignoring unsupported notification options: %s", sorted(unknown))
        known = {k: v for k, v in options.items() if k in NOTIFICATION_OPTIONS}
        known.setdefault("icon", self.default_icon)
        known.setdefault("badge", self.default_icon)
        notification = NativeNotification(title=title, **known)

        def _on_click() -> None:
            if self.focus is not None:
                self.focus()
            if notification.link and self.navigate is not None:
                self.navigate(notification.link)
            notification.close()

        notification.on_click = _on_click

        try:
            await self.platform.display(notification)
        except Exception as e:
            logger.error("Failed to display native notification '%s': %s", title, e)
            return None
        return notification

    # --- Per event type --------------------------------------------------

    async def task_due(self, task_title: str, link: str) -> Optional[NativeNotification]:
        return await self.show(
            f"Task Due: {task_title}",
            body="This task is due today. Click to view.",
            tag="task-due",
            data={"link": link},
        )

    async def task_overdue(self, task_title: str, days_overdue: int, link: str) -> Optional[NativeNotification]:
        return await self.show(
            "Task Overdue",
            body=f"{task_title} was due {days_overdue} day{'s' if days_overdue != 1 else ''} ago",
            tag="task-overdue",
            data={"link": link},
            require_interaction=True,
        )

    async def health_reminder(self) -> Optional[NativeNotification]:
        return await self.show(
            "Health Check-in",
            body="Log your health metrics for today",
            tag="health-reminder",
            data={"link": "/health"},
        )

    async def weekly_planning(self) -> Optional[NativeNotification]:
        return await self.show(
            "Weekly Planning",
            body="Time to plan your week!",
            tag="weekly-planning",
            data={"link": "/"},
        )

    async def daily_reflection(self) -> Optional[NativeNotification]:
        return await self.show(
            "Daily Reflection",
            body="How was your day? Add your reflection.",
            tag="daily-reflection",
            data={"link": "/"},
        )

    async def task_completed(self, task_title: str) -> Optional[NativeNotification]:
        return await self.show(
            "Task Completed! 🎉",
            body=f'Great job on finishing "{task_title}"!',
            tag="task-completed",
        )

    async def project_phase(self, project_name: str) -> Optional[NativeNotification]:
        return await self.show(
            "Project Phase",
            body=f"{project_name} target date is approaching",
            tag="project-phase",
            data={"link": "/ventures"},
        )
