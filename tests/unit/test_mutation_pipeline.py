"""
Unit Tests for the Mutation Pipeline

Tests the create/update pipeline:
- VALID_TRANSITIONS constant and validate_transition()
- Successful runs end LOGGED with exactly one audit entry
- Rejected runs end REJECTED with no store or trail change
- Audit detail formats
"""

import pytest
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from conftest import make_report

from portal.audit_trail import AuditTrail
from portal.errors import NotFoundError, PortalError, ValidationError
from portal.models import AuditAction, ReportDraft, SessionContext
from portal.mutation_pipeline import (
    MutationErrorCode,
    MutationOperation,
    MutationPipeline,
    MutationResult,
    MutationState,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    validate_transition,
)
from portal.record_store import RecordStore


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(current_user="guest", is_authenticated=True, ip_address="10.0.0.5")


@pytest.fixture
def parts(stepping_clock):
    store = RecordStore()
    store.load([make_report(1, "100.00"), make_report(2, "200.00", product_name="Wireless Mouse")])
    trail = AuditTrail(clock=stepping_clock)
    return store, trail, MutationPipeline(store, trail)


# =============================================================================
# Test State Machine
# =============================================================================

class TestTransitions:

    def test_terminal_states_have_no_exits(self) -> None:
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == []

    def test_every_state_defined(self) -> None:
        for state in MutationState:
            assert state in VALID_TRANSITIONS

    def test_valid_transition(self) -> None:
        assert validate_transition(MutationState.DRAFT, MutationState.VALIDATED) == (True, None)

    def test_skipping_validation_rejected(self) -> None:
        valid, code = validate_transition(MutationState.DRAFT, MutationState.APPLIED, "corr-1")
        assert valid is False
        assert code == MutationErrorCode.INVALID_TRANSITION == "RPT-030"

    def test_leaving_terminal_state_rejected(self) -> None:
        assert validate_transition(MutationState.LOGGED, MutationState.DRAFT)[0] is False


# =============================================================================
# Test create()
# =============================================================================

class TestCreate:

    def test_success_path(self, parts, session) -> None:
        store, trail, pipeline = parts
        result = pipeline.create(session, ReportDraft(product_name="Designer Desk", amount="450"))

        assert result.success
        assert result.operation is MutationOperation.CREATE
        assert result.history == [
            MutationState.DRAFT, MutationState.VALIDATED, MutationState.APPLIED, MutationState.LOGGED,
        ]
        assert result.record.id == 3
        assert store.get(3) == result.record
        assert len(trail) == 1

    def test_audit_entry_format(self, parts, session) -> None:
        _, trail, pipeline = parts
        result = pipeline.create(session, ReportDraft(product_name="Designer Desk", amount="450"))
        entry = trail.latest()
        assert entry is result.audit_entry
        assert entry.action is AuditAction.DATA_CREATE
        assert entry.details == "New statutory registry entry created ID:3 (Designer Desk)"
        assert entry.performed_by == "guest"
        assert entry.ip_address == "10.0.0.5"

    def test_rejection_leaves_everything_unchanged(self, parts, session) -> None:
        store, trail, pipeline = parts
        before = store.snapshot()
        result = pipeline.create(session, ReportDraft(product_name="Desk", amount="abc"))

        assert not result.success
        assert result.state is MutationState.REJECTED
        assert result.error_code == "RPT-002"
        assert isinstance(result.error, ValidationError)
        assert result.record is None
        assert store.snapshot() == before
        assert len(trail) == 0

    def test_oversized_amount_rejected(self, parts, session) -> None:
        store, trail, pipeline = parts
        before = store.snapshot()
        result = pipeline.create(session, ReportDraft(product_name="X", amount="1e26"))

        assert result.state is MutationState.REJECTED
        assert result.history == [MutationState.DRAFT, MutationState.REJECTED]
        assert isinstance(result.error, ValidationError)
        assert store.snapshot() == before
        assert len(trail) == 0

    def test_unwrap_raises_rejection(self, parts, session) -> None:
        _, _, pipeline = parts
        with pytest.raises(ValidationError):
            pipeline.create(session, ReportDraft(product_name="Desk")).unwrap()

    def test_correlation_ids_are_distinct(self, parts, session) -> None:
        _, _, pipeline = parts
        a = pipeline.create(session, ReportDraft(product_name="A", amount="1"))
        b = pipeline.create(session, ReportDraft(product_name="B", amount="1"))
        assert a.correlation_id != b.correlation_id


# =============================================================================
# Test update()
# =============================================================================

class TestUpdate:

    def test_success_path(self, parts, session) -> None:
        store, trail, pipeline = parts
        result = pipeline.update(session, 2, ReportDraft(amount="250"))

        assert result.success
        assert store.get(2).amount == Decimal("250.00")
        assert trail.latest().action is AuditAction.DATA_UPDATE
        assert trail.latest().details == "Updated registry record ID:2 (Wireless Mouse)"

    def test_invalid_amount_rejected(self, parts, session) -> None:
        store, trail, pipeline = parts
        before = store.get(2)
        result = pipeline.update(session, 2, ReportDraft(amount="abc"))

        assert result.state is MutationState.REJECTED
        assert result.history == [MutationState.DRAFT, MutationState.REJECTED]
        assert store.get(2) == before
        assert len(trail) == 0

    def test_missing_record_rejected_after_validation(self, parts, session) -> None:
        _, trail, pipeline = parts
        result = pipeline.update(session, 99, ReportDraft(amount="1"))

        assert isinstance(result.error, NotFoundError)
        assert result.error_code == "RPT-003"
        assert result.history == [MutationState.DRAFT, MutationState.VALIDATED, MutationState.REJECTED]
        assert len(trail) == 0


# =============================================================================
# Test MutationResult.unwrap()
# =============================================================================

class TestUnwrap:

    def test_result_without_record_is_internal_fault(self) -> None:
        result = MutationResult(
            operation=MutationOperation.CREATE,
            state=MutationState.APPLIED,
            correlation_id="c-1",
        )
        with pytest.raises(PortalError) as exc_info:
            result.unwrap()
        assert exc_info.value.error_code == MutationErrorCode.INVALID_TRANSITION
