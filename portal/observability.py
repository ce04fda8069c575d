"""
============================================================================
Report Portal - Prometheus Metrics
============================================================================

Reliability Level: L5 High
Input Constraints: Label values are enum values or short codes
Side Effects: Updates the Prometheus default registry

METRICS EXPOSED
---------------
- portal_audit_entries_total{action}: Audit entries appended
- portal_mutations_rejected_total{operation,error_code}: Rejected drafts
- portal_ticket_quota_rejections_total: Ticket submissions over quota
- portal_report_sync_total{status}: Report fetch outcomes
- portal_records_loaded: Records currently in the store

Metric failures are logged and never interrupt the operation being measured.

============================================================================
"""

import logging

from prometheus_client import Counter, Gauge

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# PROMETHEUS METRICS DEFINITIONS
# ============================================================================

AUDIT_ENTRIES_TOTAL = Counter(
    "portal_audit_entries_total",
    "Total number of audit trail entries appended",
    ["action"]
)

MUTATIONS_REJECTED_TOTAL = Counter(
    "portal_mutations_rejected_total",
    "Total number of create/update drafts rejected before application",
    ["operation", "error_code"]
)

TICKET_QUOTA_REJECTIONS_TOTAL = Counter(
    "portal_ticket_quota_rejections_total",
    "Total number of ticket submissions rejected by the session quota"
)

REPORT_SYNC_TOTAL = Counter(
    "portal_report_sync_total",
    "Total number of report sync attempts by outcome",
    ["status"]
)

RECORDS_LOADED = Gauge(
    "portal_records_loaded",
    "Number of sales reports currently held in the record store"
)


# ============================================================================
# METRIC UPDATE FUNCTIONS
# ============================================================================

def record_audit_entry(action: str) -> None:
    try:
        AUDIT_ENTRIES_TOTAL.labels(action=action).inc()
    except Exception as e:
        logger.error("[OBS-001] Failed to record audit_entry metric | error=%s", str(e))


def record_mutation_rejected(operation: str, error_code: str) -> None:
    try:
        MUTATIONS_REJECTED_TOTAL.labels(operation=operation, error_code=error_code).inc()
    except Exception as e:
        logger.error("[OBS-002] Failed to record mutation_rejected metric | error=%s", str(e))


def record_quota_rejection() -> None:
    try:
        TICKET_QUOTA_REJECTIONS_TOTAL.inc()
    except Exception as e:
        logger.error("[OBS-003] Failed to record quota_rejection metric | error=%s", str(e))


def record_report_sync(status: str) -> None:
    try:
        REPORT_SYNC_TOTAL.labels(status=status).inc()
    except Exception as e:
        logger.error("[OBS-004] Failed to record report_sync metric | error=%s", str(e))


def update_records_loaded(count: int) -> None:
    try:
        RECORDS_LOADED.set(count)
    except Exception as e:
        logger.error("[OBS-005] Failed to update records_loaded gauge | error=%s", str(e))


__all__ = [
    "AUDIT_ENTRIES_TOTAL",
    "MUTATIONS_REJECTED_TOTAL",
    "TICKET_QUOTA_REJECTIONS_TOTAL",
    "REPORT_SYNC_TOTAL",
    "RECORDS_LOADED",
    "record_audit_entry",
    "record_mutation_rejected",
    "record_quota_rejection",
    "record_report_sync",
    "update_records_loaded",
]
