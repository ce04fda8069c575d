"""
============================================================================
Base Report Source - Abstract Interface for Report Providers
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: Implementations must hand back Decimal amounts
Traceability: Every fetch carries a correlation_id

SOURCE INTERFACE:
    The engine only knows this interface, so the HTTP client can be swapped
    for an in-memory source in tests and demos.

    fetch_reports() -> list of SalesReport
        Fails with TransportError on network, status or parse failure.
    aclose()
        Release any held connections. Safe to call more than once.

============================================================================
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
import uuid

from portal.models import SalesReport

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================

class SourceStatus(Enum):
    """Outcome of the most recent fetch."""
    IDLE = "IDLE"
    FETCHING = "FETCHING"
    OK = "OK"
    ERROR = "ERROR"
    CLOSED = "CLOSED"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class SourceHealth:
    """Fetch counters for a report source."""
    source_name: str
    status: SourceStatus
    last_fetch_at: Optional[datetime]
    fetches_ok: int
    errors_count: int
    correlation_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_name": self.source_name,
            "status": self.status.value,
            "last_fetch_at": self.last_fetch_at.isoformat() if self.last_fetch_at else None,
            "fetches_ok": self.fetches_ok,
            "errors_count": self.errors_count,
            "correlation_id": self.correlation_id,
        }


# =============================================================================
# Base Source Class
# =============================================================================

class ReportSource(ABC):
    """
    Abstract base class for report providers.

    Subclasses implement _fetch(); fetch_reports() wraps it with status
    tracking and logging.
    """

    def __init__(self, source_name: str, correlation_id: Optional[str] = None) -> None:
        self._source_name = source_name
        self._correlation_id = correlation_id or str(uuid.uuid4())
        self._status = SourceStatus.IDLE
        self._last_fetch_at = None  # type: Optional[datetime]
        self._fetches_ok = 0
        self._errors_count = 0

    @property
    def source_name(self) -> str:
        return self._source_name

    @property
    def status(self) -> SourceStatus:
        return self._status

    @abstractmethod
    async def _fetch(self, correlation_id: str) -> List[SalesReport]:
        """Fetch and parse every report. Raise TransportError on failure."""
        pass

    async def aclose(self) -> None:
        """Release resources. The base implementation only marks the source closed."""
        self._status = SourceStatus.CLOSED

    async def fetch_reports(self) -> List[SalesReport]:
        """
        Fetch the full report list from the source.

        Raises:
            TransportError: On network, status or parse failure
        """
        correlation_id = str(uuid.uuid4())
        self._status = SourceStatus.FETCHING

        try:
            reports = await self._fetch(correlation_id)
        except Exception:
            self._status = SourceStatus.ERROR
            self._errors_count += 1
            raise

        self._status = SourceStatus.OK
        self._fetches_ok += 1
        self._last_fetch_at = datetime.now()

        logger.info(
            f"[REPORT-SOURCE] Fetch complete | source={self._source_name} | "
            f"count={len(reports)} | correlation_id={correlation_id}"
        )
        return reports

    def get_health(self) -> SourceHealth:
        return SourceHealth(
            source_name=self._source_name,
            status=self._status,
            last_fetch_at=self._last_fetch_at,
            fetches_ok=self._fetches_ok,
            errors_count=self._errors_count,
            correlation_id=self._correlation_id,
        )


__all__ = [
    "SourceStatus",
    "SourceHealth",
    "ReportSource",
]
