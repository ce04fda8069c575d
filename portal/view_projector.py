"""
============================================================================
Report Portal - View Projector
============================================================================

Reliability Level: L5 High
Decimal Integrity: All sums use decimal.Decimal; no float arithmetic
Side Effects: None (pure functions over a record snapshot)

PROJECTIONS:
    - filtered_records: category filter, then case-insensitive substring
      search over productName and region
    - category_aggregate / region_aggregate: sums over the WHOLE store, not
      the filtered view (distribution charts show the full ledger)
    - total_sales / average_ticket: over the filtered view only; the
      average of an empty view is 0

DETERMINISM:
    Same records + same FilterState always give the same result. Aggregate
    keys are ordered by first occurrence in the record sequence.

============================================================================
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Dict, Sequence, Tuple, List, Any
from dataclasses import dataclass

from portal.models import SalesReport, FilterState, ALL_CATEGORIES, PRECISION_AMOUNT

ZERO = Decimal("0")


# =============================================================================
# Projection Functions
# =============================================================================

def filtered_records(
    records: Sequence[SalesReport],
    filter_state: FilterState,
) -> Tuple[SalesReport, ...]:
    """Records matching the active category filter and search term, in store order."""
    selected = list(records)

    if filter_state.category_filter != ALL_CATEGORIES:
        selected = [r for r in selected if r.category == filter_state.category_filter]

    if filter_state.search_term:
        term = filter_state.search_term.lower()
        selected = [
            r for r in selected
            if term in r.product_name.lower() or term in r.region.lower()
        ]

    return tuple(selected)


def _sum_by(records: Sequence[SalesReport], key: str) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for record in records:
        name = getattr(record, key)
        totals[name] = totals.get(name, ZERO) + record.amount
    return totals


def category_aggregate(records: Sequence[SalesReport]) -> Dict[str, Decimal]:
    """category -> sum(amount) across every record passed in."""
    return _sum_by(records, "category")


def region_aggregate(records: Sequence[SalesReport]) -> Dict[str, Decimal]:
    """region -> sum(amount) across every record passed in."""
    return _sum_by(records, "region")


def total_sales(records: Sequence[SalesReport]) -> Decimal:
    return sum((r.amount for r in records), ZERO)


def average_ticket(records: Sequence[SalesReport]) -> Decimal:
    """total / count, or 0 for an empty sequence."""
    if not records:
        return ZERO
    return total_sales(records) / len(records)


def category_options(records: Sequence[SalesReport]) -> Tuple[str, ...]:
    """Filter choices: "All" followed by distinct categories in first-seen order."""
    seen: Dict[str, None] = {}
    for record in records:
        seen.setdefault(record.category, None)
    return (ALL_CATEGORIES,) + tuple(seen)


def region_count(records: Sequence[SalesReport]) -> int:
    return len({r.region for r in records})


# =============================================================================
# DashboardView
# =============================================================================

@dataclass(frozen=True)
class DashboardView:
    """Everything the table and charts need for one (store, filter) pair."""
    filter_state: FilterState
    records: Tuple[SalesReport, ...]
    category_totals: Dict[str, Decimal]
    region_totals: Dict[str, Decimal]
    total_sales: Decimal
    average_ticket: Decimal
    category_options: Tuple[str, ...]
    region_count: int

    @property
    def record_count(self) -> int:
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        """Display shape; the average is rounded to cents here only."""
        category_data: List[Dict[str, Any]] = [
            {"name": name, "value": str(value)} for name, value in self.category_totals.items()
        ]
        region_data: List[Dict[str, Any]] = [
            {"name": name, "amount": str(value)} for name, value in self.region_totals.items()
        ]
        return {
            "categoryFilter": self.filter_state.category_filter,
            "searchTerm": self.filter_state.search_term,
            "records": [r.to_dict() for r in self.records],
            "categoryData": category_data,
            "regionData": region_data,
            "totalSales": str(self.total_sales),
            "averageTicket": str(self.average_ticket.quantize(PRECISION_AMOUNT, rounding=ROUND_HALF_EVEN)),
            "categories": list(self.category_options),
            "regionCount": self.region_count,
        }


def project(records: Sequence[SalesReport], filter_state: FilterState) -> DashboardView:
    """Compute the full dashboard view for a store snapshot and filter."""
    snapshot = tuple(records)
    visible = filtered_records(snapshot, filter_state)
    return DashboardView(
        filter_state=filter_state,
        records=visible,
        category_totals=category_aggregate(snapshot),
        region_totals=region_aggregate(snapshot),
        total_sales=total_sales(visible),
        average_ticket=average_ticket(visible),
        category_options=category_options(snapshot),
        region_count=region_count(snapshot),
    )


__all__ = [
    "filtered_records",
    "category_aggregate",
    "region_aggregate",
    "total_sales",
    "average_ticket",
    "category_options",
    "region_count",
    "DashboardView",
    "project",
]
