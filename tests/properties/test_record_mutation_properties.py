"""
============================================================================
Property-Based Tests for Record Identity and Audit Accounting
============================================================================

Tests the record store and mutation pipeline using Hypothesis.
Minimum 100 iterations per property.

Properties tested:
- create() yields an id strictly greater than every prior id
- Record ids in the store stay pairwise distinct
- Audit trail growth equals the number of successful operations
- A rejected update leaves the record and the trail untouched

============================================================================
"""

from datetime import date
from decimal import Decimal
from typing import List, Tuple

from hypothesis import given, settings
from hypothesis import strategies as st

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from portal.audit_trail import AuditTrail
from portal.models import ReportDraft, SalesReport, SessionContext
from portal.mutation_pipeline import MutationPipeline
from portal.record_store import RecordStore


# =============================================================================
# HYPOTHESIS STRATEGIES
# =============================================================================

valid_amount_strategy = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("1000000"), places=2,
    allow_nan=False, allow_infinity=False,
).map(str)

invalid_amount_strategy = st.sampled_from(["abc", "", "-1", "NaN", "Infinity", "1,5"])

amount_strategy = st.one_of(valid_amount_strategy, invalid_amount_strategy)

initial_ids_strategy = st.lists(
    st.integers(min_value=1, max_value=10000), unique=True, max_size=10,
)

# ("create", amount) or ("update", index-into-existing-or-missing, amount)
operation_strategy = st.one_of(
    st.tuples(st.just("create"), amount_strategy),
    st.tuples(st.just("update"), st.integers(min_value=0, max_value=15), amount_strategy),
)


def seed_store(ids: List[int]) -> RecordStore:
    store = RecordStore(today=lambda: date(2026, 2, 14))
    store.load(
        SalesReport(i, f"Product {i}", "Electronics", Decimal("1.00"), date(2026, 2, 1), "North")
        for i in ids
    )
    return store


# =============================================================================
# PROPERTIES
# =============================================================================

@settings(max_examples=100)
@given(initial_ids=initial_ids_strategy, amounts=st.lists(valid_amount_strategy, min_size=1, max_size=10))
def test_create_ids_strictly_increase(initial_ids: List[int], amounts: List[str]) -> None:
    store = seed_store(initial_ids)
    highest = max(initial_ids, default=0)

    for amount in amounts:
        record = store.create(ReportDraft(product_name="New", amount=amount))
        assert record.id > highest
        highest = record.id

    ids = store.ids()
    assert len(ids) == len(set(ids))


@settings(max_examples=100)
@given(initial_ids=initial_ids_strategy, operations=st.lists(operation_strategy, max_size=20))
def test_trail_growth_equals_successful_operations(initial_ids: List[int], operations: List[Tuple]) -> None:
    store = seed_store(initial_ids)
    trail = AuditTrail()
    pipeline = MutationPipeline(store, trail)
    session = SessionContext(current_user="guest", is_authenticated=True)

    successes = 0
    for operation in operations:
        if operation[0] == "create":
            result = pipeline.create(session, ReportDraft(product_name="New", amount=operation[1]))
        else:
            _, index, amount = operation
            ids = store.ids()
            target = ids[index] if index < len(ids) else 999999
            result = pipeline.update(session, target, ReportDraft(amount=amount))
        if result.success:
            successes += 1
        assert len(trail) == successes

    ids = store.ids()
    assert len(ids) == len(set(ids))


@settings(max_examples=100)
@given(initial_ids=st.lists(st.integers(min_value=1, max_value=500), unique=True, min_size=1, max_size=10),
       bad_amount=invalid_amount_strategy)
def test_rejected_update_changes_nothing(initial_ids: List[int], bad_amount: str) -> None:
    store = seed_store(initial_ids)
    trail = AuditTrail()
    pipeline = MutationPipeline(store, trail)
    before = store.snapshot()

    result = pipeline.update(SessionContext(), initial_ids[0], ReportDraft(amount=bad_amount))

    assert not result.success
    assert store.snapshot() == before
    assert len(trail) == 0
