"""
Tests for task completion celebrations and toast handling
"""
from datetime import datetime, timedelta, timezone

import pytest

from lifeos.features.celebrations import TaskCelebration
from lifeos.features.notifications import ToastPresenter
from lifeos.schemas import NotificationType

from .conftest import SUNDAY_MORNING


@pytest.mark.asyncio
async def test_celebrate_fans_out(stack):
    celebration = TaskCelebration(stack)
    assert await celebration.celebrate("Ship v1", now=SUNDAY_MORNING) is True

    notifications = await stack.store.get_notifications()
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.task_completed
    assert notifications[0].message == 'Great job on finishing "Ship v1"!'
    assert notifications[0].link is None

    toast = stack.toasts.pending()[0]
    assert toast.title == "🎉 Great Work!"
    assert toast.description == 'You completed "Ship v1"'
    assert stack.bridge.platform.shown[0].tag == "task-completed"


@pytest.mark.asyncio
async def test_confetti_hook_is_called(stack):
    calls = []
    celebration = TaskCelebration(stack, confetti=lambda **kw: calls.append(kw))
    await celebration.celebrate("Ship v1", now=SUNDAY_MORNING)
    assert calls == [{"particle_count": 100, "spread": 70, "origin_y": 0.6}]


@pytest.mark.asyncio
async def test_per_call_confetti_overrides_default(stack):
    default_calls, call_calls = [], []
    celebration = TaskCelebration(stack, confetti=lambda **kw: default_calls.append(kw))
    await celebration.celebrate("Ship v1", confetti=lambda **kw: call_calls.append(kw), now=SUNDAY_MORNING)
    assert default_calls == []
    assert len(call_calls) == 1


@pytest.mark.asyncio
async def test_missing_or_broken_confetti_is_fine(stack):
    def broken(**kwargs):
        raise RuntimeError("canvas unavailable")

    assert await TaskCelebration(stack).celebrate("A", now=SUNDAY_MORNING) is True
    assert await TaskCelebration(stack, confetti=broken).celebrate("B", now=SUNDAY_MORNING) is True
    assert len(await stack.store.get_notifications()) == 2


@pytest.mark.asyncio
async def test_suppressed_celebration_skips_confetti(stack):
    calls = []
    await stack.store.update_settings(task_completion_celebrations=False)
    celebration = TaskCelebration(stack, confetti=lambda **kw: calls.append(kw))

    assert await celebration.celebrate("Ship v1", now=SUNDAY_MORNING) is False
    assert calls == []
    assert stack.toasts.pending() == []


# ---------------------------------------------------------------------------
# Toasts
# ---------------------------------------------------------------------------

def test_drain_returns_fresh_toasts_once():
    toasts = ToastPresenter(ttl_seconds=10)
    toasts.health_reminder()
    toasts.weekly_planning()

    drained = toasts.drain()
    assert [t.title for t in drained] == ["Health Check-in", "Weekly Planning"]
    assert drained[0].link == "/health"
    assert toasts.drain() == []


def test_expired_toasts_are_dropped():
    toasts = ToastPresenter(ttl_seconds=10)
    toasts.daily_reflection()
    later = datetime.now(timezone.utc) + timedelta(seconds=30)
    assert toasts.drain(now=later) == []


def test_pending_queue_is_bounded():
    toasts = ToastPresenter(max_pending=2)
    for title in ("a", "b", "c"):
        toasts.task_due(title, "/")
    assert [t.description for t in toasts.pending()] == ["b", "c"]


def test_overdue_toast_copy():
    toasts = ToastPresenter()
    one = toasts.task_overdue("Pay rent", 1)
    zero = toasts.task_overdue("Pay rent", 0)
    assert one.description == "Pay rent was due 1 day ago"
    assert zero.description == "Pay rent was due 0 days ago"
    assert one.variant == "destructive"


def test_generic_toasts():
    toasts = ToastPresenter()
    assert toasts.warning("Careful").title == "⚠️ Careful"
    assert toasts.error("Nope").variant == "destructive"
    assert toasts.success("Saved", "All good").description == "All good"
    assert toasts.info("FYI").variant == "default"
