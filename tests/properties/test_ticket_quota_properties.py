"""
============================================================================
Property-Based Tests for the Ticket Quota
============================================================================

Tests the ticket queue quota using Hypothesis.
Minimum 100 iterations per property.

Properties tested:
- n submissions in one session accept exactly min(n, quota) tickets
- The session counter never exceeds the quota
- Rejected submissions append nothing to the audit trail
- A logout reset restores the full quota

============================================================================
"""

from hypothesis import given, settings
from hypothesis import strategies as st

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from conftest import ManualScheduler

from portal.audit_trail import AuditTrail
from portal.errors import QuotaExceeded
from portal.models import AuditAction, SessionContext
from portal.ticket_queue import TicketQueue


@settings(max_examples=100)
@given(attempts=st.integers(min_value=0, max_value=10), quota=st.integers(min_value=1, max_value=5))
def test_accepts_at_most_quota(attempts: int, quota: int) -> None:
    trail = AuditTrail()
    queue = TicketQueue(trail, ManualScheduler(), quota=quota)
    session = SessionContext()

    rejected = 0
    for i in range(attempts):
        try:
            queue.submit(session, f"Subject {i}", "body")
        except QuotaExceeded:
            rejected += 1
        assert session.tickets_submitted_this_session <= quota

    accepted = min(attempts, quota)
    assert len(queue) == accepted
    assert rejected == attempts - accepted
    assert trail.count(AuditAction.TICKET_SUBMIT) == accepted
    assert queue.remaining(session) == quota - accepted


@settings(max_examples=100)
@given(first_round=st.integers(min_value=3, max_value=6))
def test_reset_restores_quota(first_round: int) -> None:
    queue = TicketQueue(AuditTrail(), ManualScheduler())
    session = SessionContext()
    for i in range(first_round):
        try:
            queue.submit(session, f"Subject {i}", "body")
        except QuotaExceeded:
            pass

    with pytest.raises(QuotaExceeded):
        queue.submit(session, "Over", "body")

    session.reset()
    queue.submit(session, "Fresh", "body")
    assert session.tickets_submitted_this_session == 1
    assert len(queue) == 4
