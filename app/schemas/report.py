"""
============================================================================
Report Schema - Pydantic Models for the Report Service
============================================================================

Reliability Level: L5 High
Input Constraints: Non-negative amounts with at most 2 decimal places
Side Effects: None (pure validation)

WIRE SHAPE:
    {"id": 1, "productName": "Professional Laptop", "category": "Electronics",
     "amount": "1200.00", "saleDate": "2026-02-01T00:00:00", "region": "North"}

    Amounts are serialized as strings; floats are rejected on input.

============================================================================
"""

from decimal import Decimal, InvalidOperation
from typing import Any
from datetime import datetime

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    ConfigDict,
)


# ============================================================================
# CONSTANTS
# ============================================================================

MAX_DECIMAL_PLACES = 2


# ============================================================================
# SALES REPORT SCHEMA
# ============================================================================

class SalesReportOut(BaseModel):
    """
    One sales report as served by GET /api/report.

    Field names are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "productName": "Professional Laptop",
                "category": "Electronics",
                "amount": "1200.00",
                "saleDate": "2026-02-01T00:00:00",
                "region": "North",
            }
        }
    )

    id: int = Field(..., gt=0, description="Record identifier")
    product_name: str = Field(..., alias="productName", min_length=1)
    category: str = Field(..., description="Open category domain")
    amount: Decimal = Field(..., description="Sale amount, 2 decimal places")
    sale_date: datetime = Field(..., alias="saleDate")
    region: str = Field(..., description="Open region domain")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value: Any) -> Decimal:
        """Reject floats, non-finite, negative or over-precise amounts."""
        if isinstance(value, float) or isinstance(value, bool):
            raise ValueError(
                f"[RPT-002] amount received {type(value).__name__}; use a decimal string"
            )
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"[RPT-002] amount is not a valid decimal number: {value!r}")

        if not amount.is_finite() or amount < 0:
            raise ValueError(f"[RPT-002] amount must be finite and non-negative: {value!r}")

        exponent = amount.as_tuple().exponent
        if isinstance(exponent, int) and exponent < -MAX_DECIMAL_PLACES:
            raise ValueError(
                f"[RPT-002] amount exceeds {MAX_DECIMAL_PLACES} decimal places: {value!r}"
            )
        return amount


__all__ = ["MAX_DECIMAL_PLACES", "SalesReportOut"]
