"""
Toast helpers: short-lived in-app messages picked up by the UI via GET /toasts.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Deque, List, Optional

logger = logging.getLogger("toasts")


@dataclass(slots=True)
class Toast:
    title: str
    description: Optional[str] = None
    variant: str = "default"  # default, destructive
    action_label: Optional[str] = None
    link: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _plural_days(n: int) -> str:
    return f"{n} day{'s' if n != 1 else ''}"


class ToastPresenter:
    """Bounded queue of pending toasts; anything older than the TTL is dropped unseen."""

    def __init__(self, *, ttl_seconds: int = 15, max_pending: int = 50):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._pending: Deque[Toast] = deque(maxlen=max_pending)

    def show(self, toast: Toast) -> Toast:
        self._pending.append(toast)
        logger.debug("Toast queued: %s", toast.title)
        return toast

    def drain(self, now: Optional[datetime] = None) -> List[Toast]:
        now = now or datetime.now(timezone.utc)
        fresh = [t for t in self._pending if now - t.created_at <= self.ttl]
        self._pending.clear()
        return fresh

    def pending(self) -> List[Toast]:
        return list(self._pending)

    # --- Generic ---------------------------------------------------------

    def success(self, title: str, description: Optional[str] = None) -> Toast:
        return self.show(Toast(title=title, description=description))

    def error(self, title: str, description: Optional[str] = None) -> Toast:
        return self.show(Toast(title=title, description=description, variant="destructive"))

    def info(self, title: str, description: Optional[str] = None) -> Toast:
        return self.show(Toast(title=title, description=description))

    def warning(self, title: str, description: Optional[str] = None) -> Toast:
        return self.show(Toast(title=f"⚠️ {title}", description=description))

    # --- Per event type --------------------------------------------------

    def task_due(self, task_title: str, link: str) -> Toast:
        return self.show(Toast(title="Task Due Today", description=task_title, action_label="View", link=link))

    def task_overdue(self, task_title: str, days_overdue: int) -> Toast:
        return self.show(
            Toast(
                title="⚠️ Task Overdue",
                description=f"{task_title} was due {_plural_days(days_overdue)} ago",
                variant="destructive",
            )
        )

    def health_reminder(self) -> Toast:
        return self.show(
            Toast(
                title="Health Check-in",
                description="Time to log your health metrics",
                action_label="Log Now",
                link="/health",
            )
        )

    def weekly_planning(self) -> Toast:
        return self.show(
            Toast(title="Weekly Planning", description="Plan your week ahead", action_label="Plan Now", link="/")
        )

    def daily_reflection(self) -> Toast:
        return self.show(
            Toast(title="Daily Reflection", description="How was your day?", action_label="Reflect Now", link="/")
        )

    def task_completed(self, task_title: str) -> Toast:
        return self.show(Toast(title="🎉 Great Work!", description=f'You completed "{task_title}"'))
