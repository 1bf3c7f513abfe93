"""
Reminder feature module: polling scheduler for due/overdue tasks and scheduled check-in reminders
"""
from .service import PollDiagnostics, ReminderScheduler, SchedulerHandle
from .task_source import RemoteTaskSource

__all__ = ["PollDiagnostics", "ReminderScheduler", "SchedulerHandle", "RemoteTaskSource"]
