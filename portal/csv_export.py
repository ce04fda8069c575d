"""
============================================================================
Report Portal - CSV Export
============================================================================

Reliability Level: L4 Medium
Input Constraints: Records from the current filtered view
Side Effects: None (the engine writes the DATA_EXPORT audit entry)

FORMAT:
    ID,Product,Category,Amount,Date,Region
    1,Professional Laptop,Electronics,1200.00,2026-02-01,North

    Fields are joined with "," and rows with "\n". Values are written
    verbatim: embedded commas are NOT quoted or escaped, so a product name
    containing a comma shifts the columns of that row.

============================================================================
"""

from typing import Sequence, List
from dataclasses import dataclass
from datetime import date

from portal.models import SalesReport

CSV_HEADER = ("ID", "Product", "Category", "Amount", "Date", "Region")
FIELD_SEPARATOR = ","
ROW_SEPARATOR = "\n"
FILENAME_TEMPLATE = "Report_Export_{day}.csv"


@dataclass(frozen=True)
class CsvExport:
    """A rendered export ready to hand to the caller."""
    filename: str
    content: str
    row_count: int


def export_row(record: SalesReport) -> str:
    return FIELD_SEPARATOR.join([
        str(record.id),
        record.product_name,
        record.category,
        str(record.amount),
        record.sale_date.isoformat(),
        record.region,
    ])


def export_csv(records: Sequence[SalesReport]) -> str:
    """Render records under the fixed header, in the order given."""
    lines: List[str] = [FIELD_SEPARATOR.join(CSV_HEADER)]
    lines.extend(export_row(record) for record in records)
    return ROW_SEPARATOR.join(lines)


def export_filename(day: date) -> str:
    """Report_Export_YYYY-MM-DD.csv"""
    return FILENAME_TEMPLATE.format(day=day.isoformat())


def build_export(records: Sequence[SalesReport], day: date) -> CsvExport:
    return CsvExport(
        filename=export_filename(day),
        content=export_csv(records),
        row_count=len(records),
    )


__all__ = [
    "CSV_HEADER",
    "CsvExport",
    "export_row",
    "export_csv",
    "export_filename",
    "build_export",
]
