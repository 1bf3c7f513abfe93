import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from lifeos import schemas
from lifeos.features.celebrations import TaskCelebration
from lifeos.features.notifications import BrowserNotificationBridge, NotificationStore, ToastPresenter
from lifeos.features.reminders import ReminderScheduler

logger = logging.getLogger("routes")
router = APIRouter(tags=["Notifications"])


# --- Dependencies ------------------------------------------------------------

def get_store(request: Request) -> NotificationStore:
    return request.app.state.store


def get_toasts(request: Request) -> ToastPresenter:
    return request.app.state.toasts


def get_bridge(request: Request) -> BrowserNotificationBridge:
    return request.app.state.bridge


def get_reminders(request: Request) -> ReminderScheduler:
    return request.app.state.reminders


def get_celebration(request: Request) -> TaskCelebration:
    return request.app.state.celebration


def _not_found(notification_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Notification {notification_id} not found")


# --- Notification Center -----------------------------------------------------

@router.get("/notifications", response_model=schemas.NotificationList)
async def list_notifications(filter: str = "all", store: NotificationStore = Depends(get_store)):
    if filter == "all":
        items = await store.get_notifications()
    elif filter == "unread":
        items = await store.get_notifications(unread_only=True)
    else:
        try:
            kind = schemas.NotificationType(filter)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Unknown filter '{filter}'")
        items = await store.get_notifications(type=kind)
    return {"count": len(items), "notifications": items}


@router.get("/notifications/unread-count", response_model=schemas.UnreadCount)
async def unread_count(store: NotificationStore = Depends(get_store)):
    return {"unread": await store.get_unread_count()}


@router.post("/notifications/read-all")
async def read_all(store: NotificationStore = Depends(get_store)):
    updated = await store.mark_all_as_read()
    return {"status": "ok", "updated": updated}


@router.post("/notifications/{notification_id}/read", response_model=schemas.NotificationOut)
async def mark_read(notification_id: str, store: NotificationStore = Depends(get_store)):
    n = await store.mark_as_read(notification_id)
    if n is None:
        raise _not_found(notification_id)
    return n


@router.post("/notifications/{notification_id}/unread", response_model=schemas.NotificationOut)
async def mark_unread(notification_id: str, store: NotificationStore = Depends(get_store)):
    n = await store.mark_as_unread(notification_id)
    if n is None:
        raise _not_found(notification_id)
    return n


@router.delete("/notifications/{notification_id}")
async def delete_notification(notification_id: str, store: NotificationStore = Depends(get_store)):
    if not await store.delete_notification(notification_id):
        raise _not_found(notification_id)
    return {"status": "ok", "id": notification_id}


@router.delete("/notifications")
async def clear_notifications(store: NotificationStore = Depends(get_store)):
    removed = await store.clear_all_notifications()
    return {"status": "ok", "removed": removed}


# --- Settings ----------------------------------------------------------------

@router.get("/settings/notifications", response_model=schemas.NotificationSettings)
async def read_settings(store: NotificationStore = Depends(get_store)):
    return await store.get_settings()


@router.put("/settings/notifications", response_model=schemas.NotificationSettings)
async def write_settings(
    changes: schemas.NotificationSettingsUpdate,
    store: NotificationStore = Depends(get_store),
):
    return await store.update_settings(**changes.model_dump(exclude_unset=True, exclude_none=True))


@router.post("/settings/notifications/permission", response_model=schemas.PermissionResponse)
async def request_permission(
    store: NotificationStore = Depends(get_store),
    bridge: BrowserNotificationBridge = Depends(get_bridge),
    toasts: ToastPresenter = Depends(get_toasts),
):
    granted = await bridge.request_permission()
    if granted:
        await store.update_settings(browser_notifications=True)
        toasts.success("Browser notifications enabled!")
    else:
        toasts.error("Permission denied", "Please enable notifications in your system settings.")
    return {"granted": granted, "permission": bridge.permission.value}


# --- Toasts ------------------------------------------------------------------

@router.get("/toasts", response_model=List[schemas.ToastOut])
async def drain_toasts(toasts: ToastPresenter = Depends(get_toasts)):
    return [
        schemas.ToastOut(
            title=t.title,
            description=t.description,
            variant=t.variant,
            action_label=t.action_label,
            link=t.link,
            created_at=t.created_at,
        )
        for t in toasts.drain()
    ]


# --- Celebrations ------------------------------------------------------------

@router.post("/celebrations")
async def celebrate(body: schemas.CelebrateRequest, celebration: TaskCelebration = Depends(get_celebration)):
    delivered = await celebration.celebrate(body.task_title)
    return {"status": "ok", "delivered": delivered}


# --- Reminders ---------------------------------------------------------------

@router.get("/reminders/status", response_model=schemas.ReminderStatus)
async def reminder_status(reminders: ReminderScheduler = Depends(get_reminders)):
    return schemas.ReminderStatus(
        running=reminders.is_running,
        checks={name: diag.as_schema() for name, diag in reminders.diagnostics.checks.items()},
    )


@router.post("/reminders/check", response_model=schemas.ReminderStatus)
async def run_reminder_checks(reminders: ReminderScheduler = Depends(get_reminders)):
    await reminders.run_task_checks()
    await reminders.check_scheduled_reminders()
    return await reminder_status(reminders)
