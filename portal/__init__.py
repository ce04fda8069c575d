"""
============================================================================
Report Portal - Report & Audit State Engine
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: All amounts use decimal.Decimal with ROUND_HALF_EVEN
Traceability: Every state-changing action is written to the audit trail

COMPONENTS:
    - RecordStore: authoritative in-memory sales report set
    - view_projector: filtered views and aggregates (pure functions)
    - MutationPipeline: validated, audited create/update
    - AuditTrail: append-only newest-first log
    - TicketQueue: quota-bounded service desk intake
    - SessionGate: credential + step-up login, timed logout
    - ReportPortalEngine: per-session facade over all of the above

============================================================================
"""

from portal.errors import (
    PortalError,
    TransportError,
    ValidationError,
    NotFoundError,
    AuthError,
    QuotaExceeded,
    SessionStateError,
    PortalConfigurationError,
)
from portal.models import (
    AuditAction,
    AuditLogEntry,
    FilterState,
    ReportDraft,
    SalesReport,
    SessionContext,
    SupportTicket,
    TicketCategory,
    TicketStatus,
)
from portal.config import PortalConfig, get_portal_config, reset_portal_config
from portal.engine import ReportPortalEngine, SyncResult, create_portal_engine
from portal.session_gate import GateState

__all__ = [
    # Errors
    "PortalError",
    "TransportError",
    "ValidationError",
    "NotFoundError",
    "AuthError",
    "QuotaExceeded",
    "SessionStateError",
    "PortalConfigurationError",
    # Models
    "AuditAction",
    "AuditLogEntry",
    "FilterState",
    "ReportDraft",
    "SalesReport",
    "SessionContext",
    "SupportTicket",
    "TicketCategory",
    "TicketStatus",
    # Config
    "PortalConfig",
    "get_portal_config",
    "reset_portal_config",
    # Engine
    "ReportPortalEngine",
    "SyncResult",
    "create_portal_engine",
    "GateState",
]
