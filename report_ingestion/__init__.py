"""
============================================================================
Report Ingestion Package
============================================================================

Reliability Level: L6 Critical
Decimal Integrity: All sources hand back Decimal amounts

SOURCES:
    1. HttpReportSource - REST collaborator (GET /api/report)
    2. StaticReportSource - In-memory list for demos and tests

All sources implement the ReportSource interface.
============================================================================
"""

from report_ingestion.base_source import ReportSource, SourceHealth, SourceStatus
from report_ingestion.http_source import HttpReportSource
from report_ingestion.normalizer import normalize_reports
from report_ingestion.static_source import StaticReportSource

__all__ = [
    "ReportSource",
    "SourceHealth",
    "SourceStatus",
    "HttpReportSource",
    "StaticReportSource",
    "normalize_reports",
]
