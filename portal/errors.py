"""
============================================================================
Report Portal - Error Taxonomy
============================================================================

Reliability Level: L6 Critical
Input Constraints: None
Side Effects: None

Every rejection raised by the state engine is a PortalError subclass
carrying an error code. No error is fatal to the process; all are
recoverable by user retry and leave the engine state untouched.

ERROR CODES:
    - RPT-001: Report fetch failed (network, status or parse)
    - RPT-002: Draft or ticket failed validation
    - RPT-003: Update targets a record id that does not exist
    - RPT-004: Credentials rejected
    - RPT-005: Ticket submission quota exhausted
    - RPT-006: Operation not allowed in the current session state
    - RPT-040: Configuration missing or invalid

============================================================================
"""

from typing import Optional


# =============================================================================
# Error Codes
# =============================================================================

class PortalErrorCode:
    """Error codes used in log lines and exception messages."""
    TRANSPORT_FAIL = "RPT-001"
    VALIDATION_FAIL = "RPT-002"
    NOT_FOUND = "RPT-003"
    AUTH_FAIL = "RPT-004"
    QUOTA_EXCEEDED = "RPT-005"
    INVALID_SESSION_STATE = "RPT-006"
    CONFIG_INVALID = "RPT-040"


# =============================================================================
# Exceptions
# =============================================================================

class PortalError(Exception):
    """
    Base class for all report portal errors.

    Attributes:
        error_code: RPT-XXX code identifying the failure class
        message: Human-readable description (shown to the user)
    """

    error_code = "RPT-000"

    def __init__(self, message: str, error_code: Optional[str] = None):
        if error_code is not None:
            self.error_code = error_code
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")


class TransportError(PortalError):
    """Report fetch failed or returned a body that is not a report list."""
    error_code = PortalErrorCode.TRANSPORT_FAIL


class ValidationError(PortalError):
    """A draft or ticket was rejected before touching any state."""
    error_code = PortalErrorCode.VALIDATION_FAIL

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class NotFoundError(PortalError):
    """Update referenced a record id that is not in the store."""
    error_code = PortalErrorCode.NOT_FOUND

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Sales report not found: id={record_id}")


class AuthError(PortalError):
    """Username/password pair is not on the allow-list."""
    error_code = PortalErrorCode.AUTH_FAIL


class QuotaExceeded(PortalError):
    """Ticket submission cap for the session has been reached."""
    error_code = PortalErrorCode.QUOTA_EXCEEDED

    def __init__(self, message: str, quota: int):
        self.quota = quota
        super().__init__(message)


class SessionStateError(PortalError):
    """Session gate transition or gated operation attempted from the wrong state."""
    error_code = PortalErrorCode.INVALID_SESSION_STATE


class PortalConfigurationError(PortalError):
    """Configuration failed validation at startup."""
    error_code = PortalErrorCode.CONFIG_INVALID


__all__ = [
    "PortalErrorCode",
    "PortalError",
    "TransportError",
    "ValidationError",
    "NotFoundError",
    "AuthError",
    "QuotaExceeded",
    "SessionStateError",
    "PortalConfigurationError",
]
