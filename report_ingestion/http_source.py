"""
============================================================================
HTTP Report Source - REST Collaborator Client
============================================================================

Reliability Level: L6 Critical
Input Constraints: REPORT_API_BASE_URL must point at the report service
Side Effects: Network I/O (one GET per fetch)

ENDPOINT:
    GET {base_url}/api/report -> JSON array of reports

FAILURE MAPPING (all raise TransportError, RPT-001):
    - Connection refused, DNS failure, timeout (httpx.HTTPError)
    - Non-2xx response status
    - Body that is not valid JSON
    - Body that is not an array of well-formed reports

============================================================================
"""

from decimal import Decimal
from typing import Optional, List, Union
import logging

import httpx

from portal.errors import TransportError
from portal.models import SalesReport
from report_ingestion.base_source import ReportSource, SourceStatus
from report_ingestion.normalizer import normalize_reports

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

REPORT_PATH = "/api/report"
DEFAULT_TIMEOUT_SECONDS = Decimal("10")


class HttpSourceErrorCode:
    """HTTP source error codes for log lines."""
    CONNECT_FAIL = "HTTP-001"
    BAD_STATUS = "HTTP-002"
    BAD_BODY = "HTTP-003"


# =============================================================================
# HttpReportSource
# =============================================================================

class HttpReportSource(ReportSource):
    """
    Fetches reports from the REST collaborator with httpx.AsyncClient.

    Args:
        base_url: Service root, e.g. "http://localhost:5000"
        timeout_seconds: Request timeout
        transport: Optional httpx transport (httpx.MockTransport in tests)
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: Union[Decimal, int, float] = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__("http", correlation_id=correlation_id)
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=float(timeout_seconds),
            transport=transport,
        )

        logger.info(
            f"[HTTP-SOURCE] Initialized | base_url={self._base_url} | "
            f"timeout_seconds={timeout_seconds} | correlation_id={self._correlation_id}"
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _fetch(self, correlation_id: str) -> List[SalesReport]:
        try:
            response = await self._client.get(REPORT_PATH)
        except httpx.HTTPError as e:
            logger.error(
                f"[{HttpSourceErrorCode.CONNECT_FAIL}] Report fetch failed | "
                f"url={self._base_url}{REPORT_PATH} | error={e!r} | "
                f"correlation_id={correlation_id}"
            )
            raise TransportError(f"Report service unreachable: {e}") from e

        if not response.is_success:
            logger.error(
                f"[{HttpSourceErrorCode.BAD_STATUS}] Report fetch returned error status | "
                f"status_code={response.status_code} | correlation_id={correlation_id}"
            )
            raise TransportError(f"Report service returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(
                f"[{HttpSourceErrorCode.BAD_BODY}] Report body is not JSON | "
                f"correlation_id={correlation_id}"
            )
            raise TransportError("Report service returned a non-JSON body") from e

        return normalize_reports(payload, correlation_id=correlation_id)

    async def aclose(self) -> None:
        if self._status is not SourceStatus.CLOSED:
            await self._client.aclose()
            logger.info(f"[HTTP-SOURCE] Closed | correlation_id={self._correlation_id}")
        await super().aclose()


__all__ = [
    "REPORT_PATH",
    "DEFAULT_TIMEOUT_SECONDS",
    "HttpSourceErrorCode",
    "HttpReportSource",
]
