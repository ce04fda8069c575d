"""
============================================================================
Report Portal - Session Gate
============================================================================

Reliability Level: L6 Critical
Input Constraints: Credentials checked against a fixed allow-list
Side Effects: Session context mutation, LOGIN audit entry, logout timer

SESSION GATE STATE MACHINE:

    LOGGED_OUT → CREDENTIALS_CHECKED (username allowed, password matches)
    CREDENTIALS_CHECKED → STEP_UP_PENDING (verification code sent)
    STEP_UP_PENDING → LOGGED_IN (code confirmed; one LOGIN audit entry)
    CREDENTIALS_CHECKED / STEP_UP_PENDING → LOGGED_OUT (back to login)
    LOGGED_IN → LOGGING_OUT (logout requested)
    LOGGING_OUT → LOGGED_OUT (after the logout interval; session reset)

    Only the confirming step writes the audit trail, so the two-step flow
    logs exactly once. Step-up verification is simulated and always
    succeeds once confirmed.

LOGOUT RESET:
    Session context (user, flags, ticket counter) returns to defaults and
    registered reset hooks run. Record store contents are not touched.

ERROR CODES:
    - RPT-004: Credentials rejected
    - RPT-006: Transition not allowed from the current state

============================================================================
"""

from decimal import Decimal
from typing import Optional, Dict, List, Callable, Union
from enum import Enum
import logging

from portal.audit_trail import AuditTrail
from portal.config import DEFAULT_ALLOWED_USERS, DEFAULT_PASSWORD, DEFAULT_LOGOUT_SECONDS
from portal.errors import AuthError, SessionStateError
from portal.models import AuditAction, AuditLogEntry, SessionContext
from portal.scheduler import TaskScheduler

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

LOGOUT_TASK = "logout"

AUTH_FAILURE_MESSAGE = "Invalid username or password. Access denied."


# =============================================================================
# Enums
# =============================================================================

class GateState(Enum):
    """Session gate states."""
    LOGGED_OUT = "LOGGED_OUT"
    CREDENTIALS_CHECKED = "CREDENTIALS_CHECKED"
    STEP_UP_PENDING = "STEP_UP_PENDING"
    LOGGED_IN = "LOGGED_IN"
    LOGGING_OUT = "LOGGING_OUT"


VALID_TRANSITIONS: Dict[GateState, List[GateState]] = {
    GateState.LOGGED_OUT: [GateState.CREDENTIALS_CHECKED],
    GateState.CREDENTIALS_CHECKED: [GateState.STEP_UP_PENDING, GateState.LOGGED_OUT],
    GateState.STEP_UP_PENDING: [GateState.LOGGED_IN, GateState.LOGGED_OUT],
    GateState.LOGGED_IN: [GateState.LOGGING_OUT],
    GateState.LOGGING_OUT: [GateState.LOGGED_OUT],
}


# =============================================================================
# SessionGate
# =============================================================================

class SessionGate:
    """
    Two-step login gate controlling access to the rest of the engine.

    Args:
        trail: Audit trail receiving the LOGIN entry
        scheduler: Timer source for the logout transition
        allowed_users: Usernames accepted at login (compared case-insensitively)
        password: Shared password
        logout_seconds: Length of the LOGGING_OUT transition
    """

    def __init__(
        self,
        trail: AuditTrail,
        scheduler: TaskScheduler,
        allowed_users: Optional[frozenset] = None,
        password: str = DEFAULT_PASSWORD,
        logout_seconds: Union[Decimal, int] = DEFAULT_LOGOUT_SECONDS,
    ) -> None:
        self._trail = trail
        self._scheduler = scheduler
        users = allowed_users if allowed_users is not None else DEFAULT_ALLOWED_USERS
        self._allowed_users = frozenset(u.lower() for u in users)
        self._password = password
        self._logout_seconds = Decimal(str(logout_seconds))
        self._state = GateState.LOGGED_OUT
        self._pending_username: Optional[str] = None
        self._reset_hooks: List[Callable[[], None]] = []

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def pending_username(self) -> Optional[str]:
        return self._pending_username

    @property
    def is_logged_in(self) -> bool:
        return self._state is GateState.LOGGED_IN

    def add_reset_hook(self, hook: Callable[[], None]) -> None:
        """Register a callback run when a logout completes."""
        self._reset_hooks.append(hook)

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def check_credentials(self, username: str, password: str) -> GateState:
        """
        First login step.

        Raises:
            AuthError: If the username is not allowed or the password is wrong;
                the gate stays LOGGED_OUT
            SessionStateError: If a login is already in progress or complete
        """
        self._require(GateState.LOGGED_OUT, "check credentials")

        name = (username or "").strip()
        if name.lower() not in self._allowed_users or password != self._password:
            logger.warning(
                f"[{AuthError.error_code}] Credential check failed | username={name!r}"
            )
            raise AuthError(AUTH_FAILURE_MESSAGE)

        self._pending_username = name
        self._transition(GateState.CREDENTIALS_CHECKED)
        return self._state

    def request_code(self) -> GateState:
        """Second login step: the verification code is "sent" to the device."""
        self._require(GateState.CREDENTIALS_CHECKED, "request verification code")
        self._transition(GateState.STEP_UP_PENDING)
        return self._state

    def confirm_step_up(self, session: SessionContext) -> AuditLogEntry:
        """
        Final login step. Always succeeds from STEP_UP_PENDING.

        Populates the session and appends exactly one LOGIN entry.
        """
        self._require(GateState.STEP_UP_PENDING, "confirm verification")

        username = self._pending_username or session.current_user
        session.current_user = username
        session.is_authenticated = True
        self._transition(GateState.LOGGED_IN)

        entry = self._trail.append(
            AuditAction.LOGIN,
            performed_by=username,
            details=f"Successful session initialization for {username}",
            ip_address=session.ip_address,
        )

        logger.info(
            f"[SESSION-GATE] Login complete | user={username} | "
            f"session_id={session.session_id}"
        )
        return entry

    def cancel_step_up(self) -> GateState:
        """Abandon a login in progress ("back to login")."""
        if self._state not in (GateState.CREDENTIALS_CHECKED, GateState.STEP_UP_PENDING):
            raise SessionStateError(
                f"Cannot cancel verification from state {self._state.value}"
            )
        self._pending_username = None
        self._transition(GateState.LOGGED_OUT)
        return self._state

    # -------------------------------------------------------------------------
    # Logout
    # -------------------------------------------------------------------------

    def logout(self, session: SessionContext) -> GateState:
        """
        Start the timed logout. The reset runs after the logout interval.
        """
        self._require(GateState.LOGGED_IN, "log out")

        session_id = session.session_id
        self._scheduler.schedule(
            LOGOUT_TASK,
            session_id,
            self._logout_seconds,
            lambda: self._finish_logout(session, session_id),
        )
        self._transition(GateState.LOGGING_OUT)

        logger.info(
            f"[SESSION-GATE] Logging out | user={session.current_user} | "
            f"session_id={session_id} | delay_seconds={self._logout_seconds}"
        )
        return self._state

    def complete_logout(self, session: SessionContext) -> GateState:
        """Finish a pending logout immediately (used on shutdown)."""
        self._require(GateState.LOGGING_OUT, "complete logout")
        self._scheduler.cancel(LOGOUT_TASK, session.session_id)
        self._finish_logout(session, session.session_id)
        return self._state

    def require_logged_in(self, operation: str) -> None:
        """Guard for operations that need an authenticated session."""
        if self._state is not GateState.LOGGED_IN:
            logger.warning(
                f"[{SessionStateError.error_code}] Operation requires login | "
                f"operation={operation} | state={self._state.value}"
            )
            raise SessionStateError(f"Cannot {operation}: session is {self._state.value}")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _finish_logout(self, session: SessionContext, session_id: str) -> None:
        if self._state is not GateState.LOGGING_OUT or session.session_id != session_id:
            logger.debug(f"[SESSION-GATE] Stale logout timer ignored | session_id={session_id}")
            return

        for hook in self._reset_hooks:
            hook()

        user = session.current_user
        session.reset()
        self._pending_username = None
        self._transition(GateState.LOGGED_OUT)

        logger.info(f"[SESSION-GATE] Logout complete | user={user} | session_id={session_id}")

    def _require(self, expected: GateState, operation: str) -> None:
        if self._state is not expected:
            logger.warning(
                f"[{SessionStateError.error_code}] Invalid gate operation | "
                f"operation={operation} | state={self._state.value} | "
                f"expected={expected.value}"
            )
            raise SessionStateError(
                f"Cannot {operation} from state {self._state.value}"
            )

    def _transition(self, target: GateState) -> None:
        if target not in VALID_TRANSITIONS[self._state]:
            raise SessionStateError(
                f"Invalid session transition: {self._state.value} → {target.value}"
            )
        logger.debug(f"[SESSION-GATE] {self._state.value} → {target.value}")
        self._state = target


__all__ = [
    "LOGOUT_TASK",
    "AUTH_FAILURE_MESSAGE",
    "GateState",
    "VALID_TRANSITIONS",
    "SessionGate",
]
