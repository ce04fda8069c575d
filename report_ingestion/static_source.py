"""
============================================================================
Static Report Source - In-Memory Provider
============================================================================

Serves a fixed list of reports. Used for offline demos and tests; an
optional failure can be armed to exercise the TransportError path.

============================================================================
"""

import asyncio
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from portal.errors import TransportError
from portal.models import SalesReport
from report_ingestion.base_source import ReportSource


class StaticReportSource(ReportSource):
    """
    Args:
        reports: Records returned by every fetch
        delay_seconds: Simulated latency before the fetch completes
    """

    def __init__(
        self,
        reports: Iterable[SalesReport],
        delay_seconds: Union[Decimal, int, float] = 0,
    ) -> None:
        super().__init__("static")
        self._reports = list(reports)
        self._delay = float(delay_seconds)
        self._failure: Optional[str] = None

    def set_reports(self, reports: Iterable[SalesReport]) -> None:
        self._reports = list(reports)

    def fail_next(self, message: str = "Report service unavailable") -> None:
        """Make the next fetch raise TransportError."""
        self._failure = message

    async def _fetch(self, correlation_id: str) -> List[SalesReport]:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._failure is not None:
            message, self._failure = self._failure, None
            raise TransportError(message)
        return list(self._reports)


__all__ = ["StaticReportSource"]
