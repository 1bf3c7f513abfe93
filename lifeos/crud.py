import json
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, func, select, update

from lifeos import database
from lifeos.models import models as db

logger = logging.getLogger("crud")

_ID_ALPHABET = string.ascii_lowercase + string.digits


# --- Generic DB helpers ------------------------------------------------------

async def _get_or_none(session, model, id_):
    obj = await session.get(model, id_)
    if not obj:
        logger.warning("%s with id=%s not found.", model.__name__, id_)
    return obj


async def _commit_refresh(session, obj):
    await session.commit()
    await session.refresh(obj)
    return obj


def generate_notification_id() -> str:
    """notif_<epoch ms>_<9 random chars>"""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"notif_{int(time.time() * 1000)}_{suffix}"


# --- Notification Operations -------------------------------------------------

async def create_notification(
    type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
    *,
    max_notifications: Optional[int] = None,
) -> db.Notification:
    async with database.get_sessionmaker()() as dbs:
        notification = db.Notification(
            id=generate_notification_id(),
            type=type,
            title=title,
            message=message,
            link=link,
            read=False,
            created_at=datetime.now(timezone.utc),
        )
        dbs.add(notification)
        await _commit_refresh(dbs, notification)
        logger.info("Created notification %s (%s)", notification.id, type)

    if max_notifications:
        await prune_notifications(max_notifications)
    return notification


async def prune_notifications(keep: int) -> int:
    """Delete everything but the newest `keep` notifications."""
    async with database.get_sessionmaker()() as dbs:
        keep_ids = (
            select(db.Notification.id)
            .order_by(desc(db.Notification.created_at), desc(db.Notification.id))
            .limit(keep)
        )
        result = await dbs.execute(delete(db.Notification).where(db.Notification.id.not_in(keep_ids)))
        await dbs.commit()
        removed = result.rowcount or 0
        if removed:
            logger.info("Pruned %d old notification(s)", removed)
        return removed


async def get_notifications(
    *,
    unread_only: bool = False,
    type: Optional[str] = None,
) -> List[db.Notification]:
    async with database.get_sessionmaker()() as dbs:
        stmt = select(db.Notification).order_by(desc(db.Notification.created_at), desc(db.Notification.id))
        if unread_only:
            stmt = stmt.where(db.Notification.read.is_(False))
        if type:
            stmt = stmt.where(db.Notification.type == type)
        result = await dbs.execute(stmt)
        return list(result.scalars())


async def set_notification_read(notification_id: str, read: bool) -> Optional[db.Notification]:
    async with database.get_sessionmaker()() as dbs:
        notification = await _get_or_none(dbs, db.Notification, notification_id)
        if not notification:
            return None
        notification.read = read
        await _commit_refresh(dbs, notification)
        return notification


async def mark_all_notifications_read() -> int:
    async with database.get_sessionmaker()() as dbs:
        result = await dbs.execute(
            update(db.Notification).where(db.Notification.read.is_(False)).values(read=True)
        )
        await dbs.commit()
        count = result.rowcount or 0
        logger.info("Marked %d notification(s) as read", count)
        return count


async def delete_notification(notification_id: str) -> bool:
    async with database.get_sessionmaker()() as dbs:
        notification = await _get_or_none(dbs, db.Notification, notification_id)
        if not notification:
            return False
        await dbs.delete(notification)
        await dbs.commit()
        logger.info("Deleted notification %s", notification_id)
        return True


async def delete_all_notifications() -> int:
    async with database.get_sessionmaker()() as dbs:
        result = await dbs.execute(delete(db.Notification))
        await dbs.commit()
        count = result.rowcount or 0
        logger.info("Cleared %d notification(s)", count)
        return count


async def count_unread_notifications() -> int:
    async with database.get_sessionmaker()() as dbs:
        result = await dbs.execute(
            select(func.count()).select_from(db.Notification).where(db.Notification.read.is_(False))
        )
        return int(result.scalar_one())


# --- Key/Value Settings ------------------------------------------------------

async def get_setting(key: str) -> Optional[Dict[str, Any]]:
    async with database.get_sessionmaker()() as dbs:
        row = await dbs.get(db.AppSetting, key)
        if row is None:
            return None
        try:
            value = json.loads(row.value)
        except ValueError:
            logger.warning("Stored setting %s is not valid JSON; ignoring", key)
            return None
        return value if isinstance(value, dict) else None


async def put_setting(key: str, value: Dict[str, Any]) -> None:
    payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    async with database.get_sessionmaker()() as dbs:
        row = await dbs.get(db.AppSetting, key)
        if row is None:
            dbs.add(db.AppSetting(key=key, value=payload))
        else:
            row.value = payload
            row.updated_at = datetime.now(timezone.utc)
        await dbs.commit()
        logger.info("Saved setting %s", key)
