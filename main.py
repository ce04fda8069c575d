#!/usr/bin/env python3
"""
============================================================================
Report Portal - Session Orchestrator
============================================================================

Reliability Level: L5 High
Decimal Integrity: All amounts use decimal.Decimal
Traceability: All operations include correlation_id for audit

SESSION WALKTHROUGH:
    1. Load configuration (environment / .env)
    2. Log in and complete step-up verification
    3. Sync reports from the report service
    4. Log the dashboard summary
    5. Export the current view to CSV
    6. Log out and shut down

    A sync failure is reported and the walkthrough continues with an
    empty store.

ENVIRONMENT:
    - PORTAL_DEMO_USER: Login name (default: guest)
    - PORTAL_DEMO_PASSWORD: Login password (default: PORTAL_PASSWORD)
    - PORTAL_OFFLINE: Use the bundled sample ledger instead of HTTP

USAGE:
    python main.py

============================================================================
"""

import asyncio
import logging
import os
import sys
import uuid
from datetime import datetime, timezone

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("ORCHESTRATOR")

from portal.config import get_portal_config
from portal.engine import create_portal_engine
from portal.errors import PortalError
from report_ingestion.base_source import ReportSource
from report_ingestion.static_source import StaticReportSource


def build_offline_source() -> ReportSource:
    """In-memory source over the bundled sample ledger."""
    from app.sample_data import SAMPLE_REPORTS
    from portal.models import SalesReport

    return StaticReportSource(SalesReport.from_dict(item) for item in SAMPLE_REPORTS)


async def run_session(correlation_id: str) -> int:
    config = get_portal_config()
    offline = os.environ.get("PORTAL_OFFLINE", "false").lower().strip() in ("true", "1", "yes")
    engine = create_portal_engine(config, source=build_offline_source() if offline else None)

    username = os.environ.get("PORTAL_DEMO_USER", "guest")
    password = os.environ.get("PORTAL_DEMO_PASSWORD", config.password)

    try:
        engine.login(username, password)
        engine.request_verification_code()
        engine.confirm_verification()

        sync = await engine.sync_reports()
        if not sync.success:
            logger.warning(
                f"[{sync.error_code}] Report sync unavailable: {sync.notice} | "
                f"correlation_id={correlation_id}"
            )

        view = engine.view()
        logger.info(
            f"Dashboard | records={view.record_count} | total_sales={view.total_sales} | "
            f"average_ticket={view.to_dict()['averageTicket']} | "
            f"regions={view.region_count} | categories={list(view.category_options)} | "
            f"correlation_id={correlation_id}"
        )

        export = engine.export_csv()
        logger.info(
            f"CSV export ready | filename={export.filename} | rows={export.row_count} | "
            f"correlation_id={correlation_id}"
        )

        engine.logout()
        await asyncio.sleep(float(config.logout_seconds))
        return 0

    except PortalError as e:
        logger.error(f"Session aborted: {e} | correlation_id={correlation_id}")
        return 1

    finally:
        await engine.shutdown()


def main():
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"Report portal session starting | "
        f"started={datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')} | "
        f"correlation_id={correlation_id}"
    )

    exit_code = asyncio.run(run_session(correlation_id))

    logger.info(f"Report portal session finished | exit_code={exit_code} | correlation_id={correlation_id}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
