"""
============================================================================
Report Portal - Audit Trail
============================================================================

Reliability Level: L6 Critical
Input Constraints: Actions must be AuditAction members
Side Effects: In-memory append, metrics, logging

APPEND-ONLY TRAIL:
    The trail is kept newest-first (index 0 is the latest entry). append()
    is the only mutator; entries are frozen dataclasses and the read API
    hands out tuples, so nothing written can be edited or removed.

ORDERING:
    - Entry ids are time-derived (epoch milliseconds) and strictly
      increasing: id = max(now_ms, previous_id + 1)
    - Timestamps never go backwards: a clock that steps back is clamped to
      the head entry's moment, so walking the trail from the bottom up the
      timestamps are non-decreasing

============================================================================
"""

from typing import Optional, List, Tuple, Callable
from datetime import datetime, timezone
import logging

from portal.models import (
    AuditAction,
    AuditLogEntry,
    AUDIT_TIMESTAMP_FORMAT,
    DEFAULT_CLIENT_IP,
)
from portal.observability import record_audit_entry

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Historical Entries
# =============================================================================

# Pre-existing administrative history shown on a fresh portal, oldest first
HISTORICAL_ENTRIES: Tuple[AuditLogEntry, ...] = (
    AuditLogEntry(1, "2026-02-13 13:45:01", AuditAction.LOGIN, "Administrator",
                  "192.168.1.105", "Successful administrative portal access"),
    AuditLogEntry(2, "2026-02-13 13:46:22", AuditAction.DATA_EXPORT, "Administrator",
                  "192.168.1.105", "Exported transaction ledger to CSV"),
    AuditLogEntry(3, "2026-02-13 13:47:15", AuditAction.CONFIG_CHANGE, "System",
                  "127.0.0.1", "Updated UI theme to White"),
    AuditLogEntry(4, "2026-02-13 13:48:30", AuditAction.REPORT_SYNC, "Administrator",
                  "192.168.1.105", "Synchronized BI reports with central database"),
    AuditLogEntry(5, "2026-02-13 13:49:05", AuditAction.API_ACCESS, "External Tool",
                  "45.76.12.33", "GET /api/report request"),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# AuditTrail
# =============================================================================

class AuditTrail:
    """
    Append-only, newest-first log of state-changing actions.

    Args:
        clock: Returns the current moment (timezone-aware UTC by default)
        seed_history: Start with HISTORICAL_ENTRIES already in place
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        seed_history: bool = False,
    ) -> None:
        self._clock = clock or _utcnow
        self._entries: List[AuditLogEntry] = []
        self._last_id = 0
        self._last_moment: Optional[datetime] = None

        if seed_history:
            for entry in HISTORICAL_ENTRIES:
                self._entries.insert(0, entry)
            self._last_id = max(entry.id for entry in HISTORICAL_ENTRIES)
            self._last_moment = datetime.strptime(
                HISTORICAL_ENTRIES[-1].timestamp, AUDIT_TIMESTAMP_FORMAT
            )
            logger.debug(f"[AUDIT-TRAIL] Seeded history | count={len(HISTORICAL_ENTRIES)}")

    def __len__(self) -> int:
        return len(self._entries)

    def append(
        self,
        action: AuditAction,
        performed_by: str,
        details: str,
        ip_address: str = DEFAULT_CLIENT_IP,
    ) -> AuditLogEntry:
        """
        Write one entry at the head of the trail.

        Args:
            action: Audited action type
            performed_by: Actor name shown in the trail
            details: Free-text description of the action
            ip_address: Client address

        Returns:
            The entry as written
        """
        if not isinstance(action, AuditAction):
            raise TypeError(f"action must be an AuditAction, got: {action!r}")

        now = self._clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)

        # Naive UTC moments compare against the naive seed timestamps
        moment = now.replace(tzinfo=None, microsecond=0)
        if self._last_moment is not None and moment < self._last_moment:
            moment = self._last_moment

        entry_id = max(int(now.timestamp() * 1000), self._last_id + 1)

        entry = AuditLogEntry(
            id=entry_id,
            timestamp=moment.strftime(AUDIT_TIMESTAMP_FORMAT),
            action=action,
            performed_by=performed_by,
            ip_address=ip_address,
            details=details,
        )

        self._entries.insert(0, entry)
        self._last_id = entry_id
        self._last_moment = moment

        record_audit_entry(action.value)
        logger.info(
            f"[AUDIT-TRAIL] Entry appended | id={entry.id} | action={action.value} | "
            f"performed_by={performed_by} | trail_length={len(self._entries)}"
        )
        return entry

    def entries(self) -> Tuple[AuditLogEntry, ...]:
        """All entries, newest first."""
        return tuple(self._entries)

    def latest(self) -> Optional[AuditLogEntry]:
        return self._entries[0] if self._entries else None

    def count(self, action: Optional[AuditAction] = None) -> int:
        """Number of entries, optionally restricted to one action."""
        if action is None:
            return len(self._entries)
        return sum(1 for entry in self._entries if entry.action is action)

    def by_action(self, action: AuditAction) -> Tuple[AuditLogEntry, ...]:
        return tuple(entry for entry in self._entries if entry.action is action)


__all__ = [
    "HISTORICAL_ENTRIES",
    "AuditTrail",
]
