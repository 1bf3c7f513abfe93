"""
Notification feature module: notification center, toasts, native notifications and their shared gating
"""
from .browser import BrowserNotificationBridge, NativeNotification, Permission, build_platform
from .dispatcher import NotificationDispatcher, NotificationEvent
from .store import NotificationStore
from .toasts import Toast, ToastPresenter

__all__ = [
    "BrowserNotificationBridge",
    "NativeNotification",
    "Permission",
    "build_platform",
    "NotificationDispatcher",
    "NotificationEvent",
    "NotificationStore",
    "Toast",
    "ToastPresenter",
]
