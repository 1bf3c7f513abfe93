"""
Read-only client for the task API the reminder scheduler polls.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from lifeos.schemas import OPEN_TASK_STATUSES, RemoteTask

logger = logging.getLogger("task_source")


def _coerce_tasks(payload: Any) -> List[RemoteTask]:
    """Anything but a list of task objects degrades to an empty list."""
    if not isinstance(payload, list):
        logger.warning("Task API returned %s instead of a list; treating as empty", type(payload).__name__)
        return []

    tasks: List[RemoteTask] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            tasks.append(RemoteTask.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed task record %r: %s", item.get("id"), e.error_count())
    return tasks


class RemoteTaskSource:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get_tasks(self, params: Dict[str, str]) -> List[RemoteTask]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            resp = await client.get("/api/tasks", params=params, headers=self._headers())
            resp.raise_for_status()
            try:
                payload = resp.json()
            except ValueError:
                logger.warning("Task API returned a non-JSON body")
                return []
        return _coerce_tasks(payload)

    async def fetch_due_today(self, today: date, statuses: Sequence[str] = OPEN_TASK_STATUSES) -> List[RemoteTask]:
        return await self._get_tasks({"due_date": today.isoformat(), "status": ",".join(statuses)})

    async def fetch_open(self, statuses: Sequence[str] = OPEN_TASK_STATUSES) -> List[RemoteTask]:
        return await self._get_tasks({"status": ",".join(statuses)})
