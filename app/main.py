"""
============================================================================
Report Service - FastAPI Application Entry Point
============================================================================

Reliability Level: L4 Medium (development collaborator)
Input Constraints: None (read-only service)
Side Effects: None

REPORT SERVICE:
    Pass-through REST collaborator for the report portal. Serves the full
    sample ledger with no filtering or pagination.

ENDPOINTS:
    - GET /api/report: JSON array of sales reports
    - GET /health: Liveness check
    - GET /metrics: Prometheus metrics
    - Anything else: 404 {"message": "Not Found"}

Run with:
    uvicorn app.main:app --port 5000

============================================================================
"""

import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.sample_data import load_sample_reports

# Load environment variables
load_dotenv()

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION
# ============================================================================

app = FastAPI(
    title="Report Service",
    description=(
        "Development report collaborator for the report portal.\n\n"
        "Serves the statutory sales ledger as a single unfiltered list."
    ),
    version="1.0.0",
)


# ============================================================================
# MIDDLEWARE
# ============================================================================

# The portal is served from a different origin during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes answer with the service's own 404 body."""
    if exc.status_code == 404:
        logger.info(f"[REPORT-SERVICE] Not found | path={request.url.path}")
        return JSONResponse(status_code=404, content={"message": "Not Found"})
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Side Effects: Logs error, returns safe response
    """
    error_code = "SYS-500"
    logger.error(f"[{error_code}] Unhandled exception | path={request.url.path} | error={exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error_code": error_code,
            "message": "Internal server error. This incident has been logged.",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get(
    "/api/report",
    summary="Sales Reports",
    description="Returns every sales report in the ledger.",
    tags=["Reports"]
)
async def get_reports():
    reports = load_sample_reports()
    logger.info(f"[REPORT-SERVICE] Reports served | count={len(reports)}")
    return JSONResponse(
        content=[report.model_dump(by_alias=True, mode="json") for report in reports]
    )


@app.get(
    "/health",
    summary="Health Check",
    tags=["System"]
)
async def health_check():
    return {"status": "healthy"}


@app.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Exposes Prometheus metrics for observability.",
    tags=["Observability"]
)
async def metrics():
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("REPORT_SERVICE_PORT", "5000")))
