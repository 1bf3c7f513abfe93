import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_hhmm(value: str) -> str:
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise ValueError("time must be formatted as HH:MM (24h)")
    return value


def _validate_hour_slot(value: str) -> str:
    value = _validate_hhmm(value)
    if not value.endswith(":00"):
        raise ValueError("reminder times are hourly and must be formatted as HH:00")
    return value


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(str, Enum):
    task_due = "task_due"
    task_overdue = "task_overdue"
    health_reminder = "health_reminder"
    weekly_planning = "weekly_planning"
    daily_reflection = "daily_reflection"
    task_completed = "task_completed"
    project_milestone = "project_milestone"


class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    done = "done"
    cancelled = "cancelled"


OPEN_TASK_STATUSES = (TaskStatus.todo.value, TaskStatus.in_progress.value)


# ---------------------------------------------------------------------------
# Notification Preferences
# ---------------------------------------------------------------------------
class NotificationSettings(BaseModel):
    browser_notifications: bool = Field(False, description="Show native OS notifications")
    task_due_reminders: bool = Field(True, description="Remind about tasks due today")
    task_overdue_alerts: bool = Field(True, description="Alert about overdue tasks")
    health_reminders: bool = Field(True, description="Daily health check-in reminder")
    weekly_planning_reminders: bool = Field(True, description="Weekly planning reminder")
    daily_reflection_prompts: bool = Field(True, description="Evening reflection prompt")
    task_completion_celebrations: bool = Field(True, description="Celebrate completed tasks")
    health_reminder_time: str = Field("21:00", description="HH:00; fires during that hour")
    weekly_planning_day: int = Field(0, ge=0, le=6, description="0 = Sunday, 6 = Saturday")
    weekly_planning_time: str = Field("18:00", description="HH:00; fires during that hour")
    daily_reflection_time: str = Field("21:00", description="HH:00; fires during that hour")
    do_not_disturb: bool = Field(False, description="Enable the quiet-hours window")
    quiet_hours_start: str = Field("22:00", description="Quiet hours start, HH:MM")
    quiet_hours_end: str = Field("08:00", description="Quiet hours end, HH:MM")

    model_config = {"extra": "ignore"}

    @field_validator("health_reminder_time", "weekly_planning_time", "daily_reflection_time")
    @classmethod
    def _check_reminder_time(cls, v: str) -> str:
        return _validate_hour_slot(v)

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def _check_time(cls, v: str) -> str:
        return _validate_hhmm(v)


class NotificationSettingsUpdate(BaseModel):
    browser_notifications: Optional[bool] = None
    task_due_reminders: Optional[bool] = None
    task_overdue_alerts: Optional[bool] = None
    health_reminders: Optional[bool] = None
    weekly_planning_reminders: Optional[bool] = None
    daily_reflection_prompts: Optional[bool] = None
    task_completion_celebrations: Optional[bool] = None
    health_reminder_time: Optional[str] = None
    weekly_planning_day: Optional[int] = Field(None, ge=0, le=6)
    weekly_planning_time: Optional[str] = None
    daily_reflection_time: Optional[str] = None
    do_not_disturb: Optional[bool] = None
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("health_reminder_time", "weekly_planning_time", "daily_reflection_time")
    @classmethod
    def _check_reminder_time(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _validate_hour_slot(v)

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def _check_time(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _validate_hhmm(v)


# ---------------------------------------------------------------------------
# Notification Center Schemas
# ---------------------------------------------------------------------------
class NotificationOut(BaseModel):
    id: str = Field(..., description="Generated notification id")
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = Field(None, description="Deep link opened on click")
    read: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread: int


class PermissionResponse(BaseModel):
    granted: bool
    permission: str


class ToastOut(BaseModel):
    title: str
    description: Optional[str] = None
    variant: str = "default"
    action_label: Optional[str] = None
    link: Optional[str] = None
    created_at: datetime


class CelebrateRequest(BaseModel):
    task_title: str = Field(..., min_length=1, description="Title of the task just completed")


# ---------------------------------------------------------------------------
# Remote Task Snapshot
# ---------------------------------------------------------------------------
class RemoteTask(BaseModel):
    id: str
    title: str
    due_date: Optional[str] = None
    status: str = TaskStatus.todo.value

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Union[str, int]) -> str:
        if v is None or v == "":
            raise ValueError("task id is required")
        return str(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due(cls, v: Any) -> Optional[str]:
        if v in (None, ""):
            return None
        return str(v)


# ---------------------------------------------------------------------------
# Reminder Diagnostics
# ---------------------------------------------------------------------------
class CheckDiagnosticsOut(BaseModel):
    runs: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None


class ReminderStatus(BaseModel):
    running: bool
    checks: Dict[str, CheckDiagnosticsOut] = Field(default_factory=dict)


class NotificationList(BaseModel):
    count: int
    notifications: List[NotificationOut]
