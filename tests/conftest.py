from datetime import datetime, timezone
from typing import List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from lifeos import database
from lifeos.config import get_settings
from lifeos.features.notifications import (
    BrowserNotificationBridge,
    NotificationDispatcher,
    NotificationStore,
    ToastPresenter,
)
from lifeos.features.notifications.browser import NativeNotification, NotificationPlatform, Permission
from lifeos.schemas import RemoteTask

# Sunday 18 October 2026, 08:15 UTC
SUNDAY_MORNING = datetime(2026, 10, 18, 8, 15, tzinfo=timezone.utc)


class FakePlatform(NotificationPlatform):
    """Records notifications instead of showing them."""

    name = "fake"

    def __init__(self, *, supported: bool = True, grant: bool = True):
        super().__init__()
        self.supported = supported
        self.grant = grant
        self.prompts = 0
        self.shown: List[NativeNotification] = []

    async def prompt(self) -> Permission:
        self.prompts += 1
        return Permission.granted if self.grant else Permission.denied

    async def display(self, notification: NativeNotification) -> None:
        self.shown.append(notification)


class FakeTaskSource:
    def __init__(self, due: Optional[List[dict]] = None, open_: Optional[List[dict]] = None):
        self.due = [RemoteTask.model_validate(t) for t in (due or [])]
        self.open = [RemoteTask.model_validate(t) for t in (open_ or [])]
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def fetch_due_today(self, today):
        self.calls.append(f"due:{today.isoformat()}")
        if self.error is not None:
            raise self.error
        return list(self.due)

    async def fetch_open(self):
        self.calls.append("open")
        if self.error is not None:
            raise self.error
        return list(self.open)


@pytest_asyncio.fixture()
async def db(tmp_path):
    await database.init_db_async(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    yield
    await database.shutdown_db_async()


@pytest.fixture()
def platform():
    return FakePlatform()


@pytest_asyncio.fixture()
async def stack(db, platform):
    """Store, toasts, bridge (permission already granted) and dispatcher."""
    store = NotificationStore(max_notifications=100)
    toasts = ToastPresenter(ttl_seconds=60)
    bridge = BrowserNotificationBridge(platform)
    await bridge.request_permission()
    dispatcher = NotificationDispatcher(store, toasts, bridge)
    await store.update_settings(browser_notifications=True)
    return dispatcher


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("REMINDERS_ENABLED", "false")
    monkeypatch.setenv("NOTIFICATION_PLATFORM", "none")
    get_settings.cache_clear()

    from lifeos.main import app

    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()
