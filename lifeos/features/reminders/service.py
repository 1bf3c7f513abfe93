"""
Reminder Service: polls the task API for due/overdue tasks and fires the
scheduled health / weekly-planning / daily-reflection reminders.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Dict, Optional, Set, Tuple

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lifeos.features.notifications.dispatcher import NotificationDispatcher, NotificationEvent
from lifeos.schemas import CheckDiagnosticsOut, NotificationType
from lifeos.utils.dates import hour_slot, parse_due, sunday_weekday

from .task_source import RemoteTaskSource

logger = logging.getLogger("reminder_service")

TASK_CHECK_JOB_ID = "task_checker"
REMINDER_CHECK_JOB_ID = "scheduled_reminder_checker"

ErrorObserver = Callable[[str, Exception], None]


@dataclass
class CheckDiagnostics:
    runs: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    def as_schema(self) -> CheckDiagnosticsOut:
        return CheckDiagnosticsOut(
            runs=self.runs,
            failures=self.failures,
            consecutive_failures=self.consecutive_failures,
            last_success_at=self.last_success_at,
            last_error=self.last_error,
            last_error_at=self.last_error_at,
        )


@dataclass
class PollDiagnostics:
    checks: Dict[str, CheckDiagnostics] = field(default_factory=dict)

    def get(self, name: str) -> CheckDiagnostics:
        return self.checks.setdefault(name, CheckDiagnostics())

    def record_success(self, name: str, at: datetime) -> None:
        diag = self.get(name)
        diag.runs += 1
        diag.consecutive_failures = 0
        diag.last_success_at = at

    def record_failure(self, name: str, error: Exception, at: datetime) -> None:
        diag = self.get(name)
        diag.runs += 1
        diag.failures += 1
        diag.consecutive_failures += 1
        diag.last_error = f"{type(error).__name__}: {error}"
        diag.last_error_at = at


class SchedulerHandle:
    """The two live timers: hourly task checks and the per-minute reminder check."""

    def __init__(self, scheduler: AsyncIOScheduler, task_job: Job, reminder_job: Job):
        self.scheduler = scheduler
        self.task_job = task_job
        self.reminder_job = reminder_job
        self.stopped = False

    @property
    def running(self) -> bool:
        return not self.stopped and bool(self.scheduler.running)

    def shutdown(self) -> None:
        # AsyncIOScheduler only stops on the next loop tick; drop the jobs now
        self.stopped = True
        self.scheduler.remove_all_jobs()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)


class ReminderScheduler:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        task_source: RemoteTaskSource,
        *,
        tz: tzinfo = timezone.utc,
        clock: Optional[Callable[[], datetime]] = None,
        task_interval: timedelta = timedelta(hours=1),
        reminder_interval: timedelta = timedelta(minutes=1),
        dedupe_per_day: bool = False,
        on_error: Optional[ErrorObserver] = None,
    ):
        self.dispatcher = dispatcher
        self.task_source = task_source
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(self.tz))
        self.task_interval = task_interval
        self.reminder_interval = reminder_interval
        self.dedupe_per_day = dedupe_per_day
        self.on_error = on_error
        self.diagnostics = PollDiagnostics()
        self.handle: Optional[SchedulerHandle] = None
        self._notified: Set[Tuple[str, str, date]] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.handle is not None and self.handle.running

    async def init(self) -> None:
        """(Re)start: one immediate pass over every check, then the two interval timers."""
        self.cleanup()

        await self.check_due_tasks()
        await self.check_overdue_tasks()
        await self.check_scheduled_reminders()

        scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop(), timezone=self.tz)
        task_job = scheduler.add_job(
            self.run_task_checks,
            trigger=IntervalTrigger(seconds=self.task_interval.total_seconds(), timezone=self.tz),
            id=TASK_CHECK_JOB_ID,
            name="Check due and overdue tasks",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping runs
            coalesce=True,
        )
        reminder_job = scheduler.add_job(
            self.check_scheduled_reminders,
            trigger=IntervalTrigger(seconds=self.reminder_interval.total_seconds(), timezone=self.tz),
            id=REMINDER_CHECK_JOB_ID,
            name="Check scheduled reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self.handle = SchedulerHandle(scheduler, task_job, reminder_job)
        logger.info(
            "Reminder scheduler started (tasks every %s, reminders every %s)",
            self.task_interval,
            self.reminder_interval,
        )

    def cleanup(self) -> None:
        """Stop both timers. A fetch already in flight still completes."""
        if self.handle is None:
            return
        self.handle.shutdown()
        self.handle = None
        logger.info("Reminder scheduler stopped")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz)

    def _failed(self, check: str, error: Exception, now: datetime) -> None:
        logger.error("Failed to %s: %s", check.replace("_", " "), error)
        self.diagnostics.record_failure(check, error, now)
        if self.on_error is not None:
            try:
                self.on_error(check, error)
            except Exception as e:
                logger.warning("Reminder error observer raised: %s", e)

    def _first_today(self, category: NotificationType, entity_id: str, today: date) -> bool:
        """With per-day dedup on, True only the first time a key is seen today."""
        if not self.dedupe_per_day:
            return True
        key = (category.value, entity_id, today)
        if key in self._notified:
            return False
        self._notified = {k for k in self._notified if k[2] == today}
        self._notified.add(key)
        return True

    # ------------------------------------------------------------------
    # Task checks
    # ------------------------------------------------------------------

    async def run_task_checks(self) -> None:
        await self.check_due_tasks()
        await self.check_overdue_tasks()

    async def check_due_tasks(self) -> None:
        now = self.now()
        try:
            if not await self.dispatcher.should_notify(NotificationType.task_due, now):
                return

            tasks = await self.task_source.fetch_due_today(now.date())
            self.diagnostics.record_success("check_due_tasks", now)

            for task in tasks:
                if not self._first_today(NotificationType.task_due, task.id, now.date()):
                    continue
                await self.dispatcher.fanout(
                    NotificationEvent(
                        type=NotificationType.task_due,
                        title="Task Due Today",
                        message=task.title,
                        link="/",
                        toast=lambda t, title=task.title: t.task_due(title, "/"),
                        native=lambda b, title=task.title: b.task_due(title, "/"),
                    ),
                    now,
                )
        except Exception as e:
            self._failed("check_due_tasks", e, now)

    async def check_overdue_tasks(self) -> None:
        now = self.now()
        try:
            if not await self.dispatcher.should_notify(NotificationType.task_overdue, now):
                return

            tasks = await self.task_source.fetch_open()
            self.diagnostics.record_success("check_overdue_tasks", now)

            for task in tasks:
                due = parse_due(task.due_date, self.tz)
                if due is None or not due < now:
                    continue
                days_overdue = int((now - due) // timedelta(days=1))
                if not self._first_today(NotificationType.task_overdue, task.id, now.date()):
                    continue
                await self.dispatcher.fanout(
                    NotificationEvent(
                        type=NotificationType.task_overdue,
                        title="Task Overdue",
                        message=f"{task.title} was due {days_overdue} day{'s' if days_overdue != 1 else ''} ago",
                        link="/",
                        toast=lambda t, title=task.title, d=days_overdue: t.task_overdue(title, d),
                        native=lambda b, title=task.title, d=days_overdue: b.task_overdue(title, d, "/"),
                    ),
                    now,
                )
        except Exception as e:
            self._failed("check_overdue_tasks", e, now)

    # ------------------------------------------------------------------
    # Scheduled reminders
    # ------------------------------------------------------------------

    async def _emit_scheduled(self, event: NotificationEvent, now: datetime) -> bool:
        if not await self.dispatcher.should_notify(event.type, now):
            return False
        if not self._first_today(event.type, "scheduled", now.date()):
            return False
        await self.dispatcher.fanout(event, now)
        return True

    async def show_health_reminder(self, now: Optional[datetime] = None) -> bool:
        return await self._emit_scheduled(
            NotificationEvent(
                type=NotificationType.health_reminder,
                title="Health Check-in",
                message="Log your health metrics for today",
                link="/health",
                toast=lambda t: t.health_reminder(),
                native=lambda b: b.health_reminder(),
            ),
            now or self.now(),
        )

    async def show_weekly_planning_reminder(self, now: Optional[datetime] = None) -> bool:
        return await self._emit_scheduled(
            NotificationEvent(
                type=NotificationType.weekly_planning,
                title="Weekly Planning",
                message="Time to plan your week!",
                link="/",
                toast=lambda t: t.weekly_planning(),
                native=lambda b: b.weekly_planning(),
            ),
            now or self.now(),
        )

    async def show_daily_reflection_reminder(self, now: Optional[datetime] = None) -> bool:
        return await self._emit_scheduled(
            NotificationEvent(
                type=NotificationType.daily_reflection,
                title="Daily Reflection",
                message="How was your day? Add your reflection.",
                link="/",
                toast=lambda t: t.daily_reflection(),
                native=lambda b: b.daily_reflection(),
            ),
            now or self.now(),
        )

    async def check_scheduled_reminders(self) -> None:
        now = self.now()
        try:
            settings = await self.dispatcher.store.get_settings()
            current_slot = hour_slot(now)

            if current_slot == settings.health_reminder_time:
                await self.show_health_reminder(now)

            if (
                sunday_weekday(now) == settings.weekly_planning_day
                and current_slot == settings.weekly_planning_time
            ):
                await self.show_weekly_planning_reminder(now)

            if current_slot == settings.daily_reflection_time:
                await self.show_daily_reflection_reminder(now)

            self.diagnostics.record_success("check_scheduled_reminders", now)
        except Exception as e:
            self._failed("check_scheduled_reminders", e, now)
