"""
============================================================================
Report Portal - Domain Model
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: All amounts use decimal.Decimal with ROUND_HALF_EVEN
Traceability: Audit entries carry actor, address and details

DOMAIN OBJECTS:
    - SalesReport: statutory sales transaction (owned by RecordStore)
    - ReportDraft: caller-supplied fields for create/update
    - AuditLogEntry: immutable audit trail row
    - SupportTicket: immutable service desk ticket
    - SessionContext: explicit per-session state passed to every component
    - FilterState: transient category filter and search term

WIRE FORMAT:
    JSON keys are camelCase (productName, saleDate, performedBy, ...).
    Amounts are serialized as strings to preserve precision.

============================================================================
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Optional, Dict, Any, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
import json
import logging
import uuid

from portal.errors import ValidationError

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Amounts are kept to cents
PRECISION_AMOUNT = Decimal("0.01")

# Category filter value that disables category filtering
ALL_CATEGORIES = "All"

# Audit timestamp layout ("2026-02-13 13:45:01")
AUDIT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Defaults used by the registry entry form
DEFAULT_DRAFT_CATEGORY = "Electronics"
DEFAULT_DRAFT_REGION = "District 1"

# Actor recorded before anyone has logged in
DEFAULT_USER = "Administrator"
DEFAULT_CLIENT_IP = "127.0.0.1"


# =============================================================================
# Enums
# =============================================================================

class AuditAction(Enum):
    """Audited action types."""
    LOGIN = "LOGIN"
    DATA_EXPORT = "DATA_EXPORT"
    DATA_CREATE = "DATA_CREATE"
    DATA_UPDATE = "DATA_UPDATE"
    TICKET_SUBMIT = "TICKET_SUBMIT"
    CONFIG_CHANGE = "CONFIG_CHANGE"
    REPORT_SYNC = "REPORT_SYNC"
    API_ACCESS = "API_ACCESS"


class TicketStatus(Enum):
    """Service desk ticket status."""
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"


class TicketCategory(Enum):
    """Ticket form category (not retained on the ticket)."""
    REQUEST = "request"
    FEEDBACK = "feedback"
    BUG = "bug"
    OTHER = "other"


# =============================================================================
# Custom JSON Encoder
# =============================================================================

class PortalJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for portal types.

    Handles:
    - Decimal -> str (preserves precision)
    - date/datetime -> ISO format string
    - Enum -> value
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, uuid.UUID):
            return str(obj)
        return super().default(obj)


# =============================================================================
# Field Parsing
# =============================================================================

def parse_amount(value: Any) -> Decimal:
    """
    Parse a caller-supplied amount into a non-negative Decimal.

    Accepts Decimal, int, float and numeric strings. Rejects booleans,
    empty strings, NaN, Infinity and negative values.

    Args:
        value: Raw amount

    Returns:
        Amount quantized to cents with ROUND_HALF_EVEN

    Raises:
        ValidationError: If the value is not a finite non-negative number,
            or has too many digits to hold at cent precision
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Amount is required, got: {value!r}", field="amount")

    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Amount is not a number: {value!r}", field="amount")

    if not amount.is_finite():
        raise ValidationError(f"Amount must be finite, got: {value!r}", field="amount")

    if amount < 0:
        raise ValidationError(f"Amount must be non-negative, got: {value!r}", field="amount")

    try:
        amount = amount.quantize(PRECISION_AMOUNT, rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        raise ValidationError(
            f"Amount exceeds the supported precision: {value!r}", field="amount"
        )

    # Collapse -0.00
    if amount == 0:
        amount = Decimal("0.00")

    return amount


def parse_sale_date(value: Any) -> date:
    """
    Parse a sale date from a date, datetime or ISO-8601 string.

    "2026-02-01" and "2026-02-01T00:00:00" both give date(2026, 2, 1).

    Raises:
        ValidationError: If the value cannot be read as a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValidationError(f"Sale date is not an ISO-8601 date: {value!r}", field="saleDate")


# =============================================================================
# SalesReport
# =============================================================================

@dataclass(frozen=True)
class SalesReport:
    """
    Statutory sales transaction record.

    Identity (id) is assigned by the store on create and never changes.
    Instances are immutable; updates produce a replacement instance with
    the same id.
    """
    id: int
    product_name: str
    category: str
    amount: Decimal
    sale_date: date
    region: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "id": self.id,
            "productName": self.product_name,
            "category": self.category,
            "amount": str(self.amount),
            "saleDate": self.sale_date.isoformat(),
            "region": self.region,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SalesReport":
        """
        Build a report from a wire mapping (camelCase or snake_case keys).

        Raises:
            ValidationError: If id, amount or saleDate are malformed
        """
        raw_id = data.get("id")
        try:
            if isinstance(raw_id, bool):
                raise ValueError(raw_id)
            record_id = int(str(raw_id).strip())
        except (TypeError, ValueError):
            raise ValidationError(f"Report id must be a positive integer, got: {raw_id!r}", field="id")
        if record_id <= 0:
            raise ValidationError(f"Report id must be a positive integer, got: {raw_id!r}", field="id")

        return cls(
            id=record_id,
            product_name=str(_pick(data, "productName", "product_name", default="")),
            category=str(_pick(data, "category", default="")),
            amount=parse_amount(_pick(data, "amount")),
            sale_date=parse_sale_date(_pick(data, "saleDate", "sale_date")),
            region=str(_pick(data, "region", default="")),
        )


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key's value."""
    for key in keys:
        if key in data:
            return data[key]
    return default


# =============================================================================
# ReportDraft
# =============================================================================

@dataclass
class ReportDraft:
    """
    Caller-supplied fields for a create or update.

    Every field is optional at this level. Create requires product_name and
    amount; update keeps the existing value for any field left as None.
    amount and sale_date stay raw until validation.
    """
    product_name: Optional[str] = None
    category: Optional[str] = None
    amount: Any = None
    sale_date: Any = None
    region: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReportDraft":
        """Build a draft from form data (camelCase or snake_case keys)."""
        return cls(
            product_name=_pick(data, "productName", "product_name"),
            category=_pick(data, "category"),
            amount=_pick(data, "amount"),
            sale_date=_pick(data, "saleDate", "sale_date"),
            region=_pick(data, "region"),
        )


# =============================================================================
# AuditLogEntry
# =============================================================================

@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit trail row."""
    id: int
    timestamp: str
    action: AuditAction
    performed_by: str
    ip_address: str
    details: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action": self.action.value,
            "performedBy": self.performed_by,
            "ipAddress": self.ip_address,
            "details": self.details,
        }


# =============================================================================
# SupportTicket
# =============================================================================

# Presentation hint per status
TICKET_COLOR_TAGS: Dict[TicketStatus, str] = {
    TicketStatus.SUBMITTED: "accent",
    TicketStatus.IN_PROGRESS: "warning",
    TicketStatus.RESOLVED: "success",
}


@dataclass(frozen=True)
class SupportTicket:
    """Immutable service desk ticket."""
    id: str
    subject: str
    status: TicketStatus
    color_tag: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "status": self.status.value,
            "colorTag": self.color_tag,
        }


# =============================================================================
# FilterState
# =============================================================================

@dataclass(frozen=True)
class FilterState:
    """Active category filter and search term for the records view."""
    category_filter: str = ALL_CATEGORIES
    search_term: str = ""

    def with_category(self, category: str) -> "FilterState":
        return replace(self, category_filter=category)

    def with_search(self, term: str) -> "FilterState":
        return replace(self, search_term=term)


# =============================================================================
# SessionContext
# =============================================================================

@dataclass
class SessionContext:
    """
    Explicit per-session state.

    Created empty; populated by the session gate at step-up confirmation and
    restored to these defaults at logout. The logout reset is the only place
    the ticket counter returns to zero.
    """
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    current_user: str = DEFAULT_USER
    is_authenticated: bool = False
    tickets_submitted_this_session: int = 0
    ip_address: str = DEFAULT_CLIENT_IP

    def reset(self) -> None:
        """Restore defaults and rotate the session id."""
        self.session_id = str(uuid.uuid4())
        self.current_user = DEFAULT_USER
        self.is_authenticated = False
        self.tickets_submitted_this_session = 0
        logger.debug(f"[SESSION] Context reset | session_id={self.session_id}")


__all__ = [
    "PRECISION_AMOUNT",
    "ALL_CATEGORIES",
    "AUDIT_TIMESTAMP_FORMAT",
    "DEFAULT_DRAFT_CATEGORY",
    "DEFAULT_DRAFT_REGION",
    "DEFAULT_USER",
    "DEFAULT_CLIENT_IP",
    "AuditAction",
    "TicketStatus",
    "TicketCategory",
    "PortalJSONEncoder",
    "parse_amount",
    "parse_sale_date",
    "SalesReport",
    "ReportDraft",
    "AuditLogEntry",
    "TICKET_COLOR_TAGS",
    "SupportTicket",
    "FilterState",
    "SessionContext",
]
