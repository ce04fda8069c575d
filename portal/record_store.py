"""
============================================================================
Report Portal - Record Store
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: Amounts parsed to Decimal (ROUND_HALF_EVEN, cents)
Side Effects: In-memory state only. Never writes the audit trail.

CANONICAL RECORD SET:
    The store owns the ordered sequence of SalesReport records. Readers get
    tuple snapshots; records themselves are frozen, so no caller can mutate
    store state in place.

IDENTITY:
    create() assigns id = max(existing ids, default 0) + 1 and places the
    new record at the front of the sequence. update() keeps id and position.
    Record ids in the store are always pairwise distinct.

============================================================================
"""

from typing import Optional, Dict, Iterable, List, Tuple, Callable, Any
from dataclasses import dataclass
from decimal import Decimal
from datetime import date
import logging

from portal.errors import ValidationError, NotFoundError
from portal.models import (
    SalesReport,
    ReportDraft,
    parse_amount,
    parse_sale_date,
    DEFAULT_DRAFT_CATEGORY,
    DEFAULT_DRAFT_REGION,
)
from portal.observability import update_records_loaded

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Draft Validation
# =============================================================================

@dataclass(frozen=True)
class ValidatedDraft:
    """
    A draft whose amount and sale date have been parsed.

    None means "not supplied"; for updates the stored value is kept.
    """
    product_name: Optional[str]
    category: Optional[str]
    amount: Optional[Decimal]
    sale_date: Optional[date]
    region: Optional[str]


def validate_draft(draft: ReportDraft, for_create: bool) -> ValidatedDraft:
    """
    Parse and check a draft without touching any state.

    Creates need a product name and an amount. Updates may omit anything.
    Category and region are open string domains and are not checked.

    Raises:
        ValidationError: If amount or sale date is malformed, or a create
            draft lacks a required field
    """
    if for_create:
        if draft.product_name is None or not str(draft.product_name).strip():
            raise ValidationError("Product name is required", field="productName")
        if draft.amount is None:
            raise ValidationError("Amount is required", field="amount")

    amount = parse_amount(draft.amount) if draft.amount is not None else None
    sale_date = parse_sale_date(draft.sale_date) if draft.sale_date is not None else None

    return ValidatedDraft(
        product_name=str(draft.product_name) if draft.product_name is not None else None,
        category=str(draft.category) if draft.category is not None else None,
        amount=amount,
        sale_date=sale_date,
        region=str(draft.region) if draft.region is not None else None,
    )


# =============================================================================
# RecordStore
# =============================================================================

class RecordStore:
    """
    Authoritative in-memory collection of sales reports.

    Args:
        today: Returns the default sale date for create drafts without one
    """

    def __init__(self, today: Optional[Callable[[], date]] = None) -> None:
        self._today = today or date.today
        self._records: List[SalesReport] = []

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: Any) -> bool:
        return self._index_of(record_id) is not None

    def snapshot(self) -> Tuple[SalesReport, ...]:
        """Current records in canonical order."""
        return tuple(self._records)

    def ids(self) -> Tuple[int, ...]:
        return tuple(record.id for record in self._records)

    def get(self, record_id: int) -> Optional[SalesReport]:
        index = self._index_of(record_id)
        return self._records[index] if index is not None else None

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def load(self, records: Iterable[SalesReport]) -> int:
        """
        Replace the canonical set wholesale.

        The incoming sequence is fully materialized and checked before the
        swap, so a bad sequence leaves the store exactly as it was.

        Returns:
            Number of records now in the store

        Raises:
            ValidationError: If the sequence repeats an id
        """
        incoming = list(records)

        seen: Dict[int, SalesReport] = {}
        for record in incoming:
            if record.id in seen:
                logger.error(
                    f"[{ValidationError.error_code}] Load rejected: duplicate report id | "
                    f"id={record.id}"
                )
                raise ValidationError(f"Duplicate report id in load: {record.id}", field="id")
            seen[record.id] = record

        self._records = incoming
        update_records_loaded(len(self._records))

        logger.info(f"[RECORD-STORE] Loaded | count={len(self._records)}")
        return len(self._records)

    def create(self, draft: ReportDraft) -> SalesReport:
        """
        Create a record from a draft and put it at the front of the sequence.

        Raises:
            ValidationError: If the draft is malformed
        """
        validated = validate_draft(draft, for_create=True)

        new_id = max((record.id for record in self._records), default=0) + 1
        record = SalesReport(
            id=new_id,
            product_name=validated.product_name or "",
            category=validated.category if validated.category is not None else DEFAULT_DRAFT_CATEGORY,
            amount=validated.amount if validated.amount is not None else Decimal("0.00"),
            sale_date=validated.sale_date or self._today(),
            region=validated.region if validated.region is not None else DEFAULT_DRAFT_REGION,
        )

        self._records.insert(0, record)
        update_records_loaded(len(self._records))

        logger.info(
            f"[RECORD-STORE] Created | id={record.id} | product_name={record.product_name} | "
            f"amount={record.amount}"
        )
        return record

    def update(self, record_id: int, draft: ReportDraft) -> SalesReport:
        """
        Replace the supplied fields of an existing record, keeping its id
        and position.

        Raises:
            ValidationError: If the draft is malformed (checked first)
            NotFoundError: If record_id is not in the store
        """
        validated = validate_draft(draft, for_create=False)

        index = self._index_of(record_id)
        if index is None:
            logger.warning(f"[{NotFoundError.error_code}] Update target missing | id={record_id}")
            raise NotFoundError(record_id)

        current = self._records[index]
        updated = SalesReport(
            id=current.id,
            product_name=_keep(validated.product_name, current.product_name),
            category=_keep(validated.category, current.category),
            amount=_keep(validated.amount, current.amount),
            sale_date=_keep(validated.sale_date, current.sale_date),
            region=_keep(validated.region, current.region),
        )
        self._records[index] = updated

        logger.info(
            f"[RECORD-STORE] Updated | id={updated.id} | product_name={updated.product_name} | "
            f"amount={updated.amount}"
        )
        return updated

    def _index_of(self, record_id: Any) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None


def _keep(new: Any, old: Any) -> Any:
    return old if new is None else new


__all__ = [
    "ValidatedDraft",
    "validate_draft",
    "RecordStore",
]
