"""
============================================================================
Report Normalizer - Wire Payload to SalesReport
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: Amounts parsed with decimal.Decimal (ROUND_HALF_EVEN)
Input Constraints: JSON array of report objects

The collaborator returns a JSON array of objects shaped like:

    {"id": 1, "productName": "Professional Laptop", "category": "Electronics",
     "amount": 1200.00, "saleDate": "2026-02-01T00:00:00", "region": "North"}

Any payload that is not an array, or any element that does not parse, fails
the whole batch with TransportError. A partial list is never returned.

============================================================================
"""

from typing import Any, List, Optional
import logging

from portal.errors import TransportError, ValidationError
from portal.models import SalesReport

# Configure module logger
logger = logging.getLogger(__name__)


class NormalizerErrorCode:
    """Normalizer-specific error codes."""
    NOT_A_LIST = "NORM-001"
    BAD_RECORD = "NORM-002"


def normalize_reports(payload: Any, correlation_id: Optional[str] = None) -> List[SalesReport]:
    """
    Convert a decoded JSON payload into SalesReport objects.

    Raises:
        TransportError: If the payload is not a list or any element is malformed
    """
    if not isinstance(payload, list):
        logger.error(
            f"[{NormalizerErrorCode.NOT_A_LIST}] Report payload is not an array | "
            f"type={type(payload).__name__} | correlation_id={correlation_id}"
        )
        raise TransportError(
            f"Report payload must be a JSON array, got {type(payload).__name__}"
        )

    reports: List[SalesReport] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            logger.error(
                f"[{NormalizerErrorCode.BAD_RECORD}] Report element is not an object | "
                f"index={index} | correlation_id={correlation_id}"
            )
            raise TransportError(f"Report element {index} is not an object")
        try:
            reports.append(SalesReport.from_dict(item))
        except ValidationError as e:
            logger.error(
                f"[{NormalizerErrorCode.BAD_RECORD}] Report element failed to parse | "
                f"index={index} | reason={e.message} | correlation_id={correlation_id}"
            )
            raise TransportError(f"Report element {index} is malformed: {e.message}") from e

    return reports


__all__ = [
    "NormalizerErrorCode",
    "normalize_reports",
]
