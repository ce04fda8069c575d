"""
============================================================================
Report Service - Sample Ledger
============================================================================

The fixed report set served by the development report service. Values are
decimal strings so no amount ever passes through a float.

============================================================================
"""

from typing import List, Dict, Any

from app.schemas.report import SalesReportOut


SAMPLE_REPORTS: List[Dict[str, Any]] = [
    {"id": 1, "productName": "Professional Laptop", "category": "Electronics",
     "amount": "1200.00", "saleDate": "2026-02-01T00:00:00", "region": "North"},
    {"id": 2, "productName": "Wireless Mouse", "category": "Electronics",
     "amount": "25.50", "saleDate": "2026-02-02T00:00:00", "region": "South"},
    {"id": 3, "productName": "Designer Desk", "category": "Furniture",
     "amount": "450.00", "saleDate": "2026-02-03T00:00:00", "region": "East"},
    {"id": 4, "productName": "Ergonomic Chair", "category": "Furniture",
     "amount": "299.99", "saleDate": "2026-02-04T00:00:00", "region": "West"},
    {"id": 5, "productName": "Monitor 4K", "category": "Electronics",
     "amount": "350.00", "saleDate": "2026-02-05T00:00:00", "region": "North"},
    {"id": 6, "productName": "USB-C Hub", "category": "Electronics",
     "amount": "45.00", "saleDate": "2026-02-06T00:00:00", "region": "South"},
    {"id": 7, "productName": "Bookshelf", "category": "Furniture",
     "amount": "120.00", "saleDate": "2026-02-07T00:00:00", "region": "East"},
]


def load_sample_reports() -> List[SalesReportOut]:
    """Validate the sample ledger through the response schema."""
    return [SalesReportOut.model_validate(item) for item in SAMPLE_REPORTS]


__all__ = ["SAMPLE_REPORTS", "load_sample_reports"]
