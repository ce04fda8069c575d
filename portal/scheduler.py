"""
============================================================================
Report Portal - Keyed Task Scheduler
============================================================================

Reliability Level: L5 High
Input Constraints: Must be used from inside a running asyncio event loop
Side Effects: Schedules callbacks on the event loop

Timers in the portal (logout transition, ticket highlight expiry) are
fire-and-forget callbacks keyed by the entity they affect:

    (kind, entity_id) -> pending callback

Scheduling under a key that is already pending cancels the older callback
first, so a newer state always supersedes an older one. Callbacks are
expected to re-check that their entity still exists when they fire.

============================================================================
"""

from decimal import Decimal
from typing import Optional, Dict, Tuple, Callable, Union
from dataclasses import dataclass
from datetime import datetime, timezone
import asyncio
import logging

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class SchedulerErrorCode:
    """Scheduler-specific error codes."""
    CALLBACK_FAIL = "SCH-001"


TaskKey = Tuple[str, str]


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class ScheduledTask:
    """A pending keyed callback."""
    kind: str
    entity_id: str
    delay_seconds: Decimal
    scheduled_at: datetime
    handle: asyncio.TimerHandle

    @property
    def key(self) -> TaskKey:
        return (self.kind, self.entity_id)

    def cancelled(self) -> bool:
        return self.handle.cancelled()


# =============================================================================
# TaskScheduler
# =============================================================================

class TaskScheduler:
    """
    Cancellable delayed callbacks keyed by (kind, entity_id).

    Built on loop.call_later, so callbacks run on the event loop thread and
    never overlap with other synchronous state transitions.
    """

    def __init__(self) -> None:
        self._tasks: Dict[TaskKey, ScheduledTask] = {}

    @property
    def pending_count(self) -> int:
        """Number of callbacks that have neither fired nor been cancelled."""
        return len(self._tasks)

    def schedule(
        self,
        kind: str,
        entity_id: str,
        delay_seconds: Union[Decimal, int, float],
        callback: Callable[[], None],
    ) -> ScheduledTask:
        """
        Schedule callback to run after delay_seconds.

        Any pending callback under the same key is cancelled first.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        loop = asyncio.get_running_loop()
        key = (kind, entity_id)

        self.cancel(kind, entity_id)

        delay = Decimal(str(delay_seconds))
        handle = loop.call_later(float(delay), self._fire, key, callback)
        task = ScheduledTask(
            kind=kind,
            entity_id=entity_id,
            delay_seconds=delay,
            scheduled_at=datetime.now(timezone.utc),
            handle=handle,
        )
        self._tasks[key] = task

        logger.debug(
            f"[SCHEDULER] Scheduled | kind={kind} | entity_id={entity_id} | "
            f"delay_seconds={delay}"
        )
        return task

    def cancel(self, kind: str, entity_id: str) -> bool:
        """Cancel the pending callback for a key. Returns False if none was pending."""
        task = self._tasks.pop((kind, entity_id), None)
        if task is None:
            return False

        task.handle.cancel()
        logger.debug(f"[SCHEDULER] Cancelled | kind={kind} | entity_id={entity_id}")
        return True

    def cancel_kind(self, kind: str) -> int:
        """Cancel every pending callback of one kind."""
        keys = [key for key in self._tasks if key[0] == kind]
        for key in keys:
            self.cancel(*key)
        return len(keys)

    def cancel_all(self) -> int:
        """Cancel everything. Used on shutdown."""
        keys = list(self._tasks)
        for key in keys:
            self.cancel(*key)
        if keys:
            logger.info(f"[SCHEDULER] Cancelled all pending tasks | count={len(keys)}")
        return len(keys)

    def is_scheduled(self, kind: str, entity_id: str) -> bool:
        return (kind, entity_id) in self._tasks

    def get(self, kind: str, entity_id: str) -> Optional[ScheduledTask]:
        return self._tasks.get((kind, entity_id))

    def _fire(self, key: TaskKey, callback: Callable[[], None]) -> None:
        self._tasks.pop(key, None)
        try:
            callback()
        except Exception as e:
            logger.error(
                f"[{SchedulerErrorCode.CALLBACK_FAIL}] Scheduled callback failed | "
                f"kind={key[0]} | entity_id={key[1]} | error={str(e)}"
            )


__all__ = [
    "SchedulerErrorCode",
    "ScheduledTask",
    "TaskScheduler",
]
