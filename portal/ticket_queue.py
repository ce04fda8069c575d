"""
============================================================================
Report Portal - Support Ticket Queue
============================================================================

Reliability Level: L5 High
Input Constraints: subject <= 100 chars, description <= 500 chars
Side Effects: In-memory queue, audit entry per accepted ticket, timers

QUEUE CONTRACT:
    - submit() is rejected with QuotaExceeded once the session has used its
      quota (default 3). A quota rejection creates no ticket and no audit
      entry; it is a client-visible notice only.
    - Accepted tickets are prepended (most recent first), the session
      counter is incremented and one TICKET_SUBMIT entry is appended.
    - The newest ticket is highlighted for a fixed window. A newer
      submission cancels the previous highlight timer.
    - visible() surfaces only the most recent tickets (default 4); the queue
      itself keeps every ticket.

TICKET IDS:
    "TKT-####-X" where #### is a random number in 1000..9999.

============================================================================
"""

from decimal import Decimal
from typing import Optional, List, Tuple, Union
import logging
import random

from portal.audit_trail import AuditTrail
from portal.errors import QuotaExceeded, ValidationError
from portal.models import (
    AuditAction,
    SessionContext,
    SupportTicket,
    TicketCategory,
    TicketStatus,
    TICKET_COLOR_TAGS,
)
from portal.observability import record_quota_rejection
from portal.scheduler import TaskScheduler

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_QUOTA = 3
DEFAULT_DISPLAY_LIMIT = 4
DEFAULT_HIGHLIGHT_SECONDS = Decimal("5")

MAX_SUBJECT_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500

# Characters of the subject quoted in the audit entry
AUDIT_SUBJECT_PREVIEW = 30

HIGHLIGHT_TASK = "ticket-highlight"

QUOTA_NOTICE = "For this demo, we allow {quota} tickets to be submitted. Thanks for trying"

# Tickets already on the desk when the portal starts, newest first
HISTORICAL_TICKETS: Tuple[SupportTicket, ...] = (
    SupportTicket("TKT-7721-A", "Payroll access denied...", TicketStatus.RESOLVED,
                  TICKET_COLOR_TAGS[TicketStatus.RESOLVED]),
    SupportTicket("TKT-8812-B", "Regional report mismatch", TicketStatus.IN_PROGRESS,
                  TICKET_COLOR_TAGS[TicketStatus.IN_PROGRESS]),
)


# =============================================================================
# TicketQueue
# =============================================================================

class TicketQueue:
    """
    Quota-bounded service desk intake.

    Args:
        trail: Audit trail receiving TICKET_SUBMIT entries
        scheduler: Timer source for the highlight window
        quota: Accepted submissions per session
        display_limit: Tickets returned by visible()
        highlight_seconds: Highlight window for a new ticket
        rng: Random source for ticket numbers
        seed_history: Start with HISTORICAL_TICKETS in the queue
    """

    def __init__(
        self,
        trail: AuditTrail,
        scheduler: TaskScheduler,
        quota: int = DEFAULT_QUOTA,
        display_limit: int = DEFAULT_DISPLAY_LIMIT,
        highlight_seconds: Union[Decimal, int] = DEFAULT_HIGHLIGHT_SECONDS,
        rng: Optional[random.Random] = None,
        seed_history: bool = False,
    ) -> None:
        self._trail = trail
        self._scheduler = scheduler
        self._quota = quota
        self._display_limit = display_limit
        self._highlight_seconds = Decimal(str(highlight_seconds))
        self._rng = rng or random.Random()
        self._tickets: List[SupportTicket] = list(HISTORICAL_TICKETS) if seed_history else []
        self._highlighted_id: Optional[str] = None

    @property
    def quota(self) -> int:
        return self._quota

    @property
    def highlighted_ticket_id(self) -> Optional[str]:
        return self._highlighted_id

    def __len__(self) -> int:
        return len(self._tickets)

    def tickets(self) -> Tuple[SupportTicket, ...]:
        """Every ticket in the queue, most recent first."""
        return tuple(self._tickets)

    def visible(self) -> Tuple[SupportTicket, ...]:
        """The most recent tickets, up to the display limit."""
        return tuple(self._tickets[:self._display_limit])

    def remaining(self, session: SessionContext) -> int:
        return max(self._quota - session.tickets_submitted_this_session, 0)

    def submit(
        self,
        session: SessionContext,
        subject: str,
        description: str,
        category: Union[TicketCategory, str] = TicketCategory.REQUEST,
    ) -> SupportTicket:
        """
        Accept a ticket for the session.

        Raises:
            QuotaExceeded: If the session already used its quota
            ValidationError: If subject/description are empty or too long,
                or the category is unknown
        """
        if session.tickets_submitted_this_session >= self._quota:
            record_quota_rejection()
            logger.warning(
                f"[{QuotaExceeded.error_code}] Ticket quota reached | "
                f"session_id={session.session_id} | quota={self._quota}"
            )
            raise QuotaExceeded(QUOTA_NOTICE.format(quota=self._quota), quota=self._quota)

        self._validate(subject, description, category)

        ticket = SupportTicket(
            id=self._new_ticket_id(),
            subject=subject,
            status=TicketStatus.SUBMITTED,
            color_tag=TICKET_COLOR_TAGS[TicketStatus.SUBMITTED],
        )

        self._highlight(ticket.id)

        self._trail.append(
            AuditAction.TICKET_SUBMIT,
            performed_by=session.current_user,
            details=(
                f"Submitted service desk ticket {ticket.id}: "
                f"{subject[:AUDIT_SUBJECT_PREVIEW]}..."
            ),
            ip_address=session.ip_address,
        )

        self._tickets.insert(0, ticket)
        session.tickets_submitted_this_session += 1

        logger.info(
            f"[TICKET-QUEUE] Ticket submitted | id={ticket.id} | "
            f"session_id={session.session_id} | "
            f"submitted_this_session={session.tickets_submitted_this_session}"
        )
        return ticket

    def clear_highlight(self) -> None:
        """Drop the highlight and its pending timer."""
        if self._highlighted_id is not None:
            self._scheduler.cancel(HIGHLIGHT_TASK, self._highlighted_id)
        self._highlighted_id = None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _validate(
        self,
        subject: str,
        description: str,
        category: Union[TicketCategory, str],
    ) -> None:
        if not subject or not subject.strip():
            raise ValidationError("Ticket subject is required", field="subject")
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise ValidationError(
                f"Ticket subject exceeds {MAX_SUBJECT_LENGTH} characters", field="subject"
            )
        if not description or not description.strip():
            raise ValidationError("Ticket description is required", field="description")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Ticket description exceeds {MAX_DESCRIPTION_LENGTH} characters",
                field="description",
            )
        if not isinstance(category, TicketCategory):
            try:
                TicketCategory(category)
            except ValueError:
                raise ValidationError(f"Unknown ticket category: {category!r}", field="category")

    def _new_ticket_id(self) -> str:
        existing = {ticket.id for ticket in self._tickets}
        while True:
            candidate = f"TKT-{self._rng.randint(1000, 9999)}-X"
            if candidate not in existing:
                return candidate

    def _highlight(self, ticket_id: str) -> None:
        # The previous highlight stays live until the new timer is in place
        previous = self._highlighted_id
        self._scheduler.schedule(
            HIGHLIGHT_TASK,
            ticket_id,
            self._highlight_seconds,
            lambda: self._expire_highlight(ticket_id),
        )
        if previous is not None and previous != ticket_id:
            self._scheduler.cancel(HIGHLIGHT_TASK, previous)
        self._highlighted_id = ticket_id

    def _expire_highlight(self, ticket_id: str) -> None:
        if self._highlighted_id != ticket_id:
            logger.debug(f"[TICKET-QUEUE] Stale highlight timer ignored | id={ticket_id}")
            return
        self._highlighted_id = None
        logger.debug(f"[TICKET-QUEUE] Highlight expired | id={ticket_id}")


__all__ = [
    "DEFAULT_QUOTA",
    "DEFAULT_DISPLAY_LIMIT",
    "DEFAULT_HIGHLIGHT_SECONDS",
    "MAX_SUBJECT_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "HIGHLIGHT_TASK",
    "QUOTA_NOTICE",
    "HISTORICAL_TICKETS",
    "TicketQueue",
]
