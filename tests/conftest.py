"""
Shared fixtures for the report portal test suites.

ManualScheduler replaces the event-loop timers with callbacks the test
fires explicitly, so timer-driven behavior can be tested synchronously.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from portal.models import SalesReport
from portal.scheduler import ScheduledTask, TaskScheduler


class _ManualHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(TaskScheduler):
    """TaskScheduler whose callbacks only run when fire() is called."""

    def schedule(self, kind, entity_id, delay_seconds, callback):
        self.cancel(kind, entity_id)
        task = ScheduledTask(
            kind=kind,
            entity_id=entity_id,
            delay_seconds=Decimal(str(delay_seconds)),
            scheduled_at=datetime.now(timezone.utc),
            handle=_ManualHandle(callback),
        )
        self._tasks[(kind, entity_id)] = task
        return task

    def fire(self, kind: str, entity_id: str) -> bool:
        task = self._tasks.get((kind, entity_id))
        if task is None:
            return False
        self._fire(task.key, task.handle.callback)
        return True

    def fire_all(self, kind: Optional[str] = None) -> int:
        keys = [key for key in list(self._tasks) if kind is None or key[0] == kind]
        for key in keys:
            self.fire(*key)
        return len(keys)


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


def make_report(record_id: int, amount: str = "100.00", category: str = "Electronics",
                region: str = "North", product_name: Optional[str] = None) -> SalesReport:
    return SalesReport(
        id=record_id,
        product_name=product_name or f"Product {record_id}",
        category=category,
        amount=Decimal(amount),
        sale_date=date(2026, 2, 1),
        region=region,
    )


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def stepping_clock() -> SteppingClock:
    return SteppingClock()
