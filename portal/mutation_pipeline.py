"""
============================================================================
Report Portal - Mutation Pipeline
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: Amounts validated and parsed before application
Traceability: Every operation carries a correlation_id

MUTATION STATE MACHINE:
    Each create/update runs through:

    DRAFT → VALIDATED (amount parses to a finite non-negative Decimal)
    VALIDATED → APPLIED (record written to the RecordStore)
    APPLIED → LOGGED (exactly one audit entry appended)
    DRAFT → REJECTED (validation failed)
    VALIDATED → REJECTED (update target missing)

    Terminal States: LOGGED, REJECTED

    A REJECTED operation never reaches the store or the audit trail.

ERROR CODES:
    - RPT-002: Draft failed validation
    - RPT-003: Update target missing
    - RPT-030: Invalid pipeline transition (internal fault)

============================================================================
"""

from typing import Optional, Dict, List, Tuple
from dataclasses import dataclass, field
from enum import Enum
import logging
import uuid

from portal.audit_trail import AuditTrail
from portal.errors import PortalError, ValidationError, NotFoundError
from portal.models import (
    AuditAction,
    AuditLogEntry,
    ReportDraft,
    SalesReport,
    SessionContext,
)
from portal.observability import record_mutation_rejected
from portal.record_store import RecordStore, validate_draft

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class MutationErrorCode:
    """Pipeline-specific error codes."""
    INVALID_TRANSITION = "RPT-030"


# =============================================================================
# Enums
# =============================================================================

class MutationState(Enum):
    """Lifecycle of a single create/update operation."""
    DRAFT = "DRAFT"
    VALIDATED = "VALIDATED"
    APPLIED = "APPLIED"
    LOGGED = "LOGGED"
    REJECTED = "REJECTED"


class MutationOperation(Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"


VALID_TRANSITIONS: Dict[MutationState, List[MutationState]] = {
    MutationState.DRAFT: [MutationState.VALIDATED, MutationState.REJECTED],
    MutationState.VALIDATED: [MutationState.APPLIED, MutationState.REJECTED],
    MutationState.APPLIED: [MutationState.LOGGED],
    MutationState.LOGGED: [],  # Terminal
    MutationState.REJECTED: [],  # Terminal
}

TERMINAL_STATES: Tuple[MutationState, ...] = (MutationState.LOGGED, MutationState.REJECTED)


def validate_transition(
    current: MutationState,
    target: MutationState,
    correlation_id: Optional[str] = None,
) -> Tuple[bool, Optional[str]]:
    """
    Check a pipeline transition against VALID_TRANSITIONS.

    Returns:
        (True, None) if allowed, (False, "RPT-030") otherwise
    """
    if target not in VALID_TRANSITIONS.get(current, []):
        valid = "/".join(s.value for s in VALID_TRANSITIONS.get(current, [])) or "NONE (terminal state)"
        logger.error(
            f"[{MutationErrorCode.INVALID_TRANSITION}] Invalid mutation transition: "
            f"{current.value} → {target.value}. Valid transitions: {valid} | "
            f"correlation_id={correlation_id}"
        )
        return (False, MutationErrorCode.INVALID_TRANSITION)
    return (True, None)


# =============================================================================
# Result Data Class
# =============================================================================

@dataclass
class MutationResult:
    """
    Outcome of one pipeline run.

    On success state is LOGGED and record/audit_entry are set. On rejection
    state is REJECTED and error holds the typed PortalError.
    """
    operation: MutationOperation
    state: MutationState
    correlation_id: str
    record: Optional[SalesReport] = None
    audit_entry: Optional[AuditLogEntry] = None
    error: Optional[PortalError] = None
    history: List[MutationState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is MutationState.LOGGED

    @property
    def error_code(self) -> Optional[str]:
        return self.error.error_code if self.error is not None else None

    def unwrap(self) -> SalesReport:
        """Return the record, or raise the rejection error."""
        if self.error is not None:
            raise self.error
        if self.record is None:
            raise PortalError(
                f"Mutation finished in state {self.state.value} without a record",
                error_code=MutationErrorCode.INVALID_TRANSITION,
            )
        return self.record


# =============================================================================
# MutationPipeline
# =============================================================================

class MutationPipeline:
    """
    Validates and applies create/update drafts, then logs them.

    The store is pure state; this class is the only writer that pairs a
    store mutation with its audit entry.
    """

    def __init__(self, store: RecordStore, trail: AuditTrail) -> None:
        self._store = store
        self._trail = trail

    def create(self, session: SessionContext, draft: ReportDraft) -> MutationResult:
        """Create a record. Logs DATA_CREATE on success."""
        result = self._begin(MutationOperation.CREATE)

        try:
            validate_draft(draft, for_create=True)
        except ValidationError as e:
            return self._reject(result, e)
        self._advance(result, MutationState.VALIDATED)

        record = self._store.create(draft)
        result.record = record
        self._advance(result, MutationState.APPLIED)

        result.audit_entry = self._trail.append(
            AuditAction.DATA_CREATE,
            performed_by=session.current_user,
            details=f"New statutory registry entry created ID:{record.id} ({record.product_name})",
            ip_address=session.ip_address,
        )
        self._advance(result, MutationState.LOGGED)
        return result

    def update(self, session: SessionContext, record_id: int, draft: ReportDraft) -> MutationResult:
        """Update a record in place. Logs DATA_UPDATE on success."""
        result = self._begin(MutationOperation.UPDATE)

        try:
            validate_draft(draft, for_create=False)
        except ValidationError as e:
            return self._reject(result, e)
        self._advance(result, MutationState.VALIDATED)

        try:
            record = self._store.update(record_id, draft)
        except NotFoundError as e:
            return self._reject(result, e)
        result.record = record
        self._advance(result, MutationState.APPLIED)

        result.audit_entry = self._trail.append(
            AuditAction.DATA_UPDATE,
            performed_by=session.current_user,
            details=f"Updated registry record ID:{record.id} ({record.product_name})",
            ip_address=session.ip_address,
        )
        self._advance(result, MutationState.LOGGED)
        return result

    # -------------------------------------------------------------------------
    # State handling
    # -------------------------------------------------------------------------

    def _begin(self, operation: MutationOperation) -> MutationResult:
        return MutationResult(
            operation=operation,
            state=MutationState.DRAFT,
            correlation_id=str(uuid.uuid4()),
            history=[MutationState.DRAFT],
        )

    def _advance(self, result: MutationResult, target: MutationState) -> None:
        valid, error_code = validate_transition(result.state, target, result.correlation_id)
        if not valid:
            raise PortalError(
                f"Invalid mutation transition {result.state.value} → {target.value}",
                error_code=error_code,
            )
        result.state = target
        result.history.append(target)

        logger.debug(
            f"[MUTATION] {result.operation.value} → {target.value} | "
            f"correlation_id={result.correlation_id}"
        )

    def _reject(self, result: MutationResult, error: PortalError) -> MutationResult:
        self._advance(result, MutationState.REJECTED)
        result.error = error
        record_mutation_rejected(result.operation.value, error.error_code)

        logger.warning(
            f"[{error.error_code}] {result.operation.value} rejected | "
            f"reason={error.message} | correlation_id={result.correlation_id}"
        )
        return result


__all__ = [
    "MutationErrorCode",
    "MutationState",
    "MutationOperation",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    "MutationResult",
    "MutationPipeline",
]
