"""
============================================================================
Report Portal - Report & Audit State Engine
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: All amounts and aggregates use decimal.Decimal
Traceability: Every state change is written to the audit trail

ENGINE FACADE:
    One engine instance serves one session. It owns:

    - SessionContext (explicit per-session state)
    - SessionGate (login / step-up / timed logout)
    - RecordStore + MutationPipeline (records and their audited mutations)
    - AuditTrail (append-only, newest first)
    - TicketQueue (quota-bounded service desk intake)
    - FilterState (active category filter and search term)
    - ReportSource (the REST collaborator)

    Everything except the login steps requires a LOGGED_IN session.

SYNC POLICY:
    sync_reports() is the only suspension point. Mutations may run while a
    fetch is in flight; when the fetch completes it replaces the store
    wholesale, discarding those local edits. A failed fetch is a non-fatal
    notice: the previous store is kept and nothing is audited.

============================================================================
"""

from typing import Optional, Callable, Mapping, Any, Tuple, Union, TYPE_CHECKING
from dataclasses import dataclass
from datetime import date, datetime
import logging
import random
import uuid

from portal.audit_trail import AuditTrail
from portal.config import PortalConfig, get_portal_config
from portal.csv_export import CsvExport, build_export
from portal.errors import PortalConfigurationError, TransportError, ValidationError
from portal.models import (
    AuditAction,
    AuditLogEntry,
    FilterState,
    ReportDraft,
    SalesReport,
    SessionContext,
    SupportTicket,
    TicketCategory,
)
from portal.mutation_pipeline import MutationPipeline
from portal.observability import record_report_sync
from portal.record_store import RecordStore
from portal.scheduler import TaskScheduler
from portal.session_gate import GateState, SessionGate
from portal.ticket_queue import TicketQueue
from portal.view_projector import DashboardView, project

if TYPE_CHECKING:
    from report_ingestion.base_source import ReportSource

# Configure module logger
logger = logging.getLogger(__name__)


DraftInput = Union[ReportDraft, Mapping[str, Any]]


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class SyncResult:
    """
    Outcome of a report sync.

    A failed sync is reported here instead of raised; the store keeps its
    previous contents.
    """
    success: bool
    record_count: int
    correlation_id: str
    error_code: Optional[str] = None
    notice: Optional[str] = None
    audit_entry: Optional[AuditLogEntry] = None


# =============================================================================
# ReportPortalEngine
# =============================================================================

class ReportPortalEngine:
    """
    Facade over the portal components for a single session.

    Args:
        config: Portal settings (defaults when omitted)
        source: Report collaborator used by sync_reports()
        scheduler: Timer source shared by the gate and the ticket queue
        clock: Audit trail clock
        today: Default sale date for new records
        rng: Random source for ticket numbers
    """

    def __init__(
        self,
        config: Optional[PortalConfig] = None,
        source: Optional["ReportSource"] = None,
        scheduler: Optional[TaskScheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
        today: Optional[Callable[[], date]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config or PortalConfig()
        self._source = source
        self._scheduler = scheduler or TaskScheduler()
        self._today = today or date.today

        self._session = SessionContext(ip_address=self._config.client_ip)
        self._trail = AuditTrail(clock=clock, seed_history=self._config.seed_history)
        self._store = RecordStore(today=self._today)
        self._pipeline = MutationPipeline(self._store, self._trail)
        self._queue = TicketQueue(
            self._trail,
            self._scheduler,
            quota=self._config.ticket_quota,
            display_limit=self._config.ticket_display_limit,
            highlight_seconds=self._config.highlight_seconds,
            rng=rng,
            seed_history=self._config.seed_history,
        )
        self._gate = SessionGate(
            self._trail,
            self._scheduler,
            allowed_users=self._config.allowed_users,
            password=self._config.password,
            logout_seconds=self._config.logout_seconds,
        )
        self._gate.add_reset_hook(self._queue.clear_highlight)
        self._filter_state = FilterState()

        logger.info(
            f"[PORTAL-ENGINE] Initialized | session_id={self._session.session_id} | "
            f"source={source.source_name if source else None} | "
            f"seed_history={self._config.seed_history}"
        )

    # -------------------------------------------------------------------------
    # Component access
    # -------------------------------------------------------------------------

    @property
    def config(self) -> PortalConfig:
        return self._config

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def state(self) -> GateState:
        return self._gate.state

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def trail(self) -> AuditTrail:
        return self._trail

    @property
    def queue(self) -> TicketQueue:
        return self._queue

    @property
    def scheduler(self) -> TaskScheduler:
        return self._scheduler

    @property
    def filter_state(self) -> FilterState:
        return self._filter_state

    # -------------------------------------------------------------------------
    # Session gate
    # -------------------------------------------------------------------------

    def login(self, username: str, password: str) -> GateState:
        """Check credentials. Raises AuthError on rejection."""
        return self._gate.check_credentials(username, password)

    def request_verification_code(self) -> GateState:
        return self._gate.request_code()

    def confirm_verification(self) -> AuditLogEntry:
        """Complete step-up and open the session. Writes the LOGIN entry."""
        return self._gate.confirm_step_up(self._session)

    def cancel_verification(self) -> GateState:
        return self._gate.cancel_step_up()

    def logout(self) -> GateState:
        """Begin the timed logout; the session resets when the timer fires."""
        return self._gate.logout(self._session)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    async def sync_reports(self) -> SyncResult:
        """
        Replace the store with the collaborator's current report list.

        Raises:
            SessionStateError: If the session is not logged in
            PortalConfigurationError: If the engine has no report source
        """
        self._gate.require_logged_in("sync reports")
        if self._source is None:
            raise PortalConfigurationError("No report source configured")

        correlation_id = str(uuid.uuid4())
        # The session may be reset by a logout while the fetch is in flight
        requested_by = self._session.current_user
        requested_from = self._session.ip_address
        session_id = self._session.session_id

        logger.info(
            f"[PORTAL-ENGINE] Sync started | source={self._source.source_name} | "
            f"correlation_id={correlation_id}"
        )

        try:
            reports = await self._source.fetch_reports()
            count = self._store.load(reports)
        except (TransportError, ValidationError) as e:
            record_report_sync("error")
            logger.warning(
                f"[{e.error_code}] Sync failed, keeping {len(self._store)} records | "
                f"reason={e.message} | correlation_id={correlation_id}"
            )
            return SyncResult(
                success=False,
                record_count=len(self._store),
                correlation_id=correlation_id,
                error_code=e.error_code,
                notice=e.message,
            )

        record_report_sync("success")
        if self._session.session_id != session_id:
            logger.info(
                f"[PORTAL-ENGINE] Session ended during sync | user={requested_by} | "
                f"session_id={session_id} | correlation_id={correlation_id}"
            )
        entry = self._trail.append(
            AuditAction.REPORT_SYNC,
            performed_by=requested_by,
            details=f"Synchronized {count} BI reports with central database",
            ip_address=requested_from,
        )

        logger.info(
            f"[PORTAL-ENGINE] Sync complete | count={count} | correlation_id={correlation_id}"
        )
        return SyncResult(
            success=True,
            record_count=count,
            correlation_id=correlation_id,
            audit_entry=entry,
        )

    def create_report(self, draft: DraftInput) -> SalesReport:
        """
        Create a record and log DATA_CREATE.

        Raises:
            ValidationError: If the draft is malformed (nothing is written)
        """
        self._gate.require_logged_in("create report")
        return self._pipeline.create(self._session, _as_draft(draft)).unwrap()

    def update_report(self, record_id: int, draft: DraftInput) -> SalesReport:
        """
        Update a record in place and log DATA_UPDATE.

        Raises:
            ValidationError: If the draft is malformed
            NotFoundError: If record_id is not in the store
        """
        self._gate.require_logged_in("update report")
        return self._pipeline.update(self._session, record_id, _as_draft(draft)).unwrap()

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    def view(self) -> DashboardView:
        self._gate.require_logged_in("view reports")
        return project(self._store.snapshot(), self._filter_state)

    def set_category_filter(self, category: str) -> FilterState:
        self._gate.require_logged_in("filter reports")
        self._filter_state = self._filter_state.with_category(category)
        return self._filter_state

    def set_search_term(self, term: str) -> FilterState:
        self._gate.require_logged_in("search reports")
        self._filter_state = self._filter_state.with_search(term)
        return self._filter_state

    def export_csv(self) -> CsvExport:
        """Export the filtered view and log DATA_EXPORT."""
        self._gate.require_logged_in("export reports")
        records = project(self._store.snapshot(), self._filter_state).records
        export = build_export(records, self._today())

        self._trail.append(
            AuditAction.DATA_EXPORT,
            performed_by=self._session.current_user,
            details=f"Exported {export.row_count} statutory records as CSV",
            ip_address=self._session.ip_address,
        )
        return export

    # -------------------------------------------------------------------------
    # Tickets and audit
    # -------------------------------------------------------------------------

    def submit_ticket(
        self,
        subject: str,
        description: str,
        category: Union[TicketCategory, str] = TicketCategory.REQUEST,
    ) -> SupportTicket:
        """
        Raises:
            QuotaExceeded: Once the session has used its ticket quota
            ValidationError: If subject or description are empty or too long
        """
        self._gate.require_logged_in("submit ticket")
        return self._queue.submit(self._session, subject, description, category)

    def visible_tickets(self) -> Tuple[SupportTicket, ...]:
        self._gate.require_logged_in("view tickets")
        return self._queue.visible()

    def tickets_remaining(self) -> int:
        self._gate.require_logged_in("view tickets")
        return self._queue.remaining(self._session)

    def audit_entries(self) -> Tuple[AuditLogEntry, ...]:
        self._gate.require_logged_in("view audit trail")
        return self._trail.entries()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Finish any pending logout, cancel timers and close the source."""
        if self._gate.state is GateState.LOGGING_OUT:
            self._gate.complete_logout(self._session)
        cancelled = self._scheduler.cancel_all()
        if self._source is not None:
            await self._source.aclose()
        logger.info(f"[PORTAL-ENGINE] Shutdown complete | timers_cancelled={cancelled}")


def _as_draft(draft: DraftInput) -> ReportDraft:
    if isinstance(draft, ReportDraft):
        return draft
    return ReportDraft.from_mapping(draft)


# =============================================================================
# Factory
# =============================================================================

def create_portal_engine(
    config: Optional[PortalConfig] = None,
    source: Optional["ReportSource"] = None,
) -> ReportPortalEngine:
    """
    Build an engine wired to the HTTP report service from configuration.

    Args:
        config: Settings (loaded from the environment when omitted)
        source: Override the HTTP source (e.g. a StaticReportSource)
    """
    # Deferred: report_ingestion imports the portal models
    from report_ingestion.http_source import HttpReportSource

    config = config or get_portal_config()
    if source is None:
        source = HttpReportSource(
            config.report_api_base_url,
            timeout_seconds=config.report_api_timeout_seconds,
        )
    return ReportPortalEngine(config=config, source=source)


__all__ = [
    "SyncResult",
    "ReportPortalEngine",
    "create_portal_engine",
]
