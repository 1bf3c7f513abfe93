import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Optional

from lifeos.features.notifications.dispatcher import NotificationDispatcher, NotificationEvent
from lifeos.schemas import NotificationType

logger = logging.getLogger("celebrations")

ConfettiHook = Callable[..., Any]


class TaskCelebration:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        *,
        tz: tzinfo = timezone.utc,
        confetti: Optional[ConfettiHook] = None,
    ):
        self.dispatcher = dispatcher
        self.tz = tz
        self.confetti = confetti

    async def celebrate(
        self,
        task_title: str,
        confetti: Optional[ConfettiHook] = None,
        *,
        now: Optional[datetime] = None,
    ) -> bool:
        """Announce a just-completed task. Returns False when celebrations are suppressed."""
        now = now or datetime.now(self.tz)
        delivered = await self.dispatcher.emit(
            NotificationEvent(
                type=NotificationType.task_completed,
                title="Task Completed! 🎉",
                message=f'Great job on finishing "{task_title}"!',
                toast=lambda t: t.task_completed(task_title),
                native=lambda b: b.task_completed(task_title),
            ),
            now,
        )
        if not delivered:
            return False

        hook = confetti or self.confetti
        if hook is not None:
            try:
                hook(particle_count=100, spread=70, origin_y=0.6)
            except Exception as e:
                logger.debug("Confetti hook failed: %s", e)
        return True
