"""
Unit Tests for the HTTP Report Source

Tests the httpx-based collaborator client with httpx.MockTransport:
- Successful fetch and normalization
- Non-2xx, non-JSON and non-array bodies map to TransportError
- Network errors map to TransportError
- Health counters
"""

import pytest
import httpx
from decimal import Decimal
from datetime import date

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from portal.errors import TransportError
from report_ingestion.base_source import SourceStatus
from report_ingestion.http_source import HttpReportSource, REPORT_PATH
from report_ingestion.normalizer import normalize_reports


SAMPLE = [
    {"id": 1, "productName": "Professional Laptop", "category": "Electronics",
     "amount": 1200.00, "saleDate": "2026-02-01T00:00:00", "region": "North"},
    {"id": 2, "productName": "Wireless Mouse", "category": "Electronics",
     "amount": "25.50", "saleDate": "2026-02-02T00:00:00", "region": "South"},
]


def source_for(handler) -> HttpReportSource:
    return HttpReportSource("http://reports.test/", transport=httpx.MockTransport(handler))


# =============================================================================
# Test fetch_reports()
# =============================================================================

class TestFetchReports:

    @pytest.mark.asyncio
    async def test_successful_fetch(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json=SAMPLE)

        source = source_for(handler)
        reports = await source.fetch_reports()
        await source.aclose()

        assert seen == [REPORT_PATH]
        assert [r.id for r in reports] == [1, 2]
        assert reports[0].amount == Decimal("1200.00")
        assert reports[1].sale_date == date(2026, 2, 2)
        assert source.get_health().fetches_ok == 1

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        source = source_for(lambda request: httpx.Response(404, json={"message": "Not Found"}))
        with pytest.raises(TransportError) as exc_info:
            await source.fetch_reports()
        await source.aclose()
        assert exc_info.value.error_code == "RPT-001"
        assert "404" in exc_info.value.message
        assert source.get_health().errors_count == 1

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        source = source_for(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(TransportError):
            await source.fetch_reports()
        await source.aclose()

    @pytest.mark.asyncio
    async def test_non_array_body(self) -> None:
        source = source_for(lambda request: httpx.Response(200, json={"reports": SAMPLE}))
        with pytest.raises(TransportError):
            await source.fetch_reports()
        await source.aclose()

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = source_for(handler)
        with pytest.raises(TransportError) as exc_info:
            await source.fetch_reports()
        await source.aclose()
        assert "unreachable" in exc_info.value.message
        assert source.status is SourceStatus.CLOSED

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self) -> None:
        source = source_for(lambda request: httpx.Response(200, json=[]))
        await source.aclose()
        await source.aclose()
        assert source.status is SourceStatus.CLOSED


# =============================================================================
# Test normalize_reports()
# =============================================================================

class TestNormalizeReports:

    def test_empty_list(self) -> None:
        assert normalize_reports([]) == []

    def test_bad_element_fails_whole_batch(self) -> None:
        payload = SAMPLE + [dict(SAMPLE[0], id=3, amount="abc")]
        with pytest.raises(TransportError) as exc_info:
            normalize_reports(payload)
        assert "element 2" in exc_info.value.message

    def test_oversized_amount_fails_as_transport_error(self) -> None:
        payload = SAMPLE + [dict(SAMPLE[0], id=3, amount="1e26")]
        with pytest.raises(TransportError) as exc_info:
            normalize_reports(payload)
        assert "element 2" in exc_info.value.message

    def test_non_object_element(self) -> None:
        with pytest.raises(TransportError):
            normalize_reports([1, 2, 3])
