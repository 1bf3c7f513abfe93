"""
Tests for the notification store: preferences, quiet hours and the notification center
"""
from datetime import datetime, timezone

import pytest

from lifeos import crud
from lifeos.features.notifications import NotificationStore
from lifeos.features.notifications.store import SETTINGS_KEY, in_quiet_hours, merge_settings
from lifeos.schemas import NotificationSettings, NotificationType


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 18, hour, minute, tzinfo=timezone.utc)


class TestSettingsMerge:
    def test_defaults_when_nothing_stored(self):
        settings = merge_settings(None)
        assert settings == NotificationSettings()
        assert settings.browser_notifications is False
        assert settings.health_reminder_time == "21:00"
        assert settings.weekly_planning_day == 0

    def test_stored_values_overlay_defaults(self):
        settings = merge_settings({"health_reminders": False, "unknown_key": 1})
        assert settings.health_reminders is False
        assert settings.task_due_reminders is True

    def test_invalid_stored_field_falls_back_to_default(self):
        settings = merge_settings({"health_reminder_time": "8 o'clock", "daily_reflection_time": "20:00"})
        assert settings.health_reminder_time == "21:00"
        assert settings.daily_reflection_time == "20:00"

    def test_off_the_hour_reminder_time_falls_back_to_default(self):
        settings = merge_settings({"weekly_planning_time": "18:30", "quiet_hours_end": "07:30"})
        assert settings.weekly_planning_time == "18:00"
        assert settings.quiet_hours_end == "07:30"


class TestQuietHours:
    @pytest.mark.parametrize(
        "hour, minute, expected",
        [(21, 59, False), (22, 0, True), (23, 30, True), (3, 0, True), (8, 0, True), (8, 1, False), (12, 0, False)],
    )
    def test_overnight_window(self, hour, minute, expected):
        settings = NotificationSettings(quiet_hours_start="22:00", quiet_hours_end="08:00")
        assert in_quiet_hours(settings, _at(hour, minute)) is expected

    @pytest.mark.parametrize("hour, minute, expected", [(12, 59, False), (13, 0, True), (14, 0, True), (14, 1, False)])
    def test_same_day_window(self, hour, minute, expected):
        settings = NotificationSettings(quiet_hours_start="13:00", quiet_hours_end="14:00")
        assert in_quiet_hours(settings, _at(hour, minute)) is expected


@pytest.mark.asyncio
async def test_do_not_disturb_needs_the_flag(db):
    store = NotificationStore()
    assert await store.is_do_not_disturb(_at(23)) is False

    await store.update_settings(do_not_disturb=True)
    assert await store.is_do_not_disturb(_at(23)) is True
    assert await store.is_do_not_disturb(_at(12)) is False
    assert await store.should_notify("task_due_reminders", _at(23)) is False
    assert await store.should_notify("task_due_reminders", _at(12)) is True


@pytest.mark.asyncio
async def test_settings_survive_a_new_store(db):
    store = NotificationStore()
    await store.update_settings(weekly_planning_day=3, browser_notifications=True)

    fresh = NotificationStore()
    settings = await fresh.get_settings()
    assert settings.weekly_planning_day == 3
    assert settings.browser_notifications is True
    assert (await crud.get_setting(SETTINGS_KEY))["weekly_planning_day"] == 3


@pytest.mark.asyncio
async def test_settings_are_cached_until_invalidated(db):
    store = NotificationStore()
    await store.get_settings()
    await crud.put_setting(SETTINGS_KEY, {"health_reminders": False})

    assert (await store.get_settings()).health_reminders is True
    store.invalidate()
    assert (await store.get_settings()).health_reminders is False


@pytest.mark.asyncio
async def test_add_and_list_notifications(db):
    store = NotificationStore()
    entry = await store.add_notification(NotificationType.task_due, "Task Due Today", "Pay rent", "/")

    assert entry.id.startswith("notif_")
    assert entry.read is False
    assert entry.created_at is not None

    listed = await store.get_notifications()
    assert [n.id for n in listed] == [entry.id]
    assert listed[0].link == "/"


@pytest.mark.asyncio
async def test_read_state_and_filters(db):
    store = NotificationStore()
    due = await store.add_notification(NotificationType.task_due, "Task Due Today", "Pay rent")
    health = await store.add_notification(NotificationType.health_reminder, "Health Check-in", "Log", "/health")

    assert await store.get_unread_count() == 2
    await store.mark_as_read(due.id)
    assert await store.get_unread_count() == 1
    assert [n.id for n in await store.get_notifications(unread_only=True)] == [health.id]
    assert [n.id for n in await store.get_notifications(type=NotificationType.task_due)] == [due.id]

    await store.mark_as_unread(due.id)
    assert await store.get_unread_count() == 2

    assert await store.mark_all_as_read() == 2
    assert await store.get_unread_count() == 0


@pytest.mark.asyncio
async def test_missing_notifications_are_soft(db):
    store = NotificationStore()
    assert await store.mark_as_read("notif_missing") is None
    assert await store.mark_as_unread("notif_missing") is None
    assert await store.delete_notification("notif_missing") is False


@pytest.mark.asyncio
async def test_delete_and_clear(db):
    store = NotificationStore()
    first = await store.add_notification(NotificationType.task_due, "Task Due Today", "A")
    await store.add_notification(NotificationType.task_due, "Task Due Today", "B")

    assert await store.delete_notification(first.id) is True
    assert len(await store.get_notifications()) == 1
    assert await store.clear_all_notifications() == 1
    assert await store.get_notifications() == []


@pytest.mark.asyncio
async def test_center_keeps_only_the_newest_entries(db):
    store = NotificationStore(max_notifications=3)
    for i in range(5):
        await store.add_notification(NotificationType.task_due, "Task Due Today", f"task {i}")

    remaining = await store.get_notifications()
    assert len(remaining) == 3
    assert sorted(n.message for n in remaining) == ["task 2", "task 3", "task 4"]
