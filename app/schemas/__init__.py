# ============================================================================
# Report Service - Pydantic Schemas
# ============================================================================

from app.schemas.report import SalesReportOut

__all__ = ["SalesReportOut"]
