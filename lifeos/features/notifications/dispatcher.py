"""
Fan a notification event out to the notification center, a toast and (optionally) a native notification.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from lifeos.schemas import NotificationType

from .browser import BrowserNotificationBridge
from .store import BROWSER_FLAG, CATEGORY_FLAGS, NotificationStore
from .toasts import Toast, ToastPresenter

logger = logging.getLogger("notification_dispatcher")


@dataclass
class NotificationEvent:
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    toast: Optional[Callable[[ToastPresenter], Toast]] = None
    native: Optional[Callable[[BrowserNotificationBridge], Awaitable[Any]]] = None


class NotificationDispatcher:
    def __init__(
        self,
        store: NotificationStore,
        toasts: ToastPresenter,
        bridge: BrowserNotificationBridge,
    ):
        self.store = store
        self.toasts = toasts
        self.bridge = bridge

    async def should_notify(self, type: NotificationType, now: datetime) -> bool:
        """Category enabled and not inside do-not-disturb."""
        return await self.store.should_notify(CATEGORY_FLAGS[type], now)

    async def fanout(self, event: NotificationEvent, now: datetime) -> None:
        """Deliver an already-gated event. Each sink is best-effort on its own."""
        try:
            await self.store.add_notification(event.type, event.title, event.message, event.link)
        except Exception as e:
            logger.error("Failed to add %s to notification center: %s", event.type.value, e)

        try:
            if event.toast is not None:
                event.toast(self.toasts)
        except Exception as e:
            logger.error("Failed to show %s toast: %s", event.type.value, e)

        if event.native is None:
            return
        try:
            if await self.store.should_notify(BROWSER_FLAG, now):
                await event.native(self.bridge)
        except Exception as e:
            logger.error("Failed to show %s native notification: %s", event.type.value, e)

    async def emit(self, event: NotificationEvent, now: datetime) -> bool:
        """Gate on the event's category, then fan out. Returns whether it was delivered."""
        if not await self.should_notify(event.type, now):
            return False
        await self.fanout(event, now)
        return True
