"""
Unit Tests for the Record Store

Tests the record store module:
- load() wholesale replacement and duplicate rejection
- create() id assignment, defaults and front insertion
- update() merge semantics, position preservation and NotFoundError
- validate_draft() required fields
"""

import pytest
from datetime import date
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from conftest import make_report

from portal.errors import NotFoundError, ValidationError
from portal.models import ReportDraft
from portal.record_store import RecordStore, validate_draft


@pytest.fixture
def store() -> RecordStore:
    store = RecordStore(today=lambda: date(2026, 2, 14))
    store.load([make_report(1, "100.00"), make_report(2, "200.00"), make_report(5, "50.00")])
    return store


# =============================================================================
# Test load()
# =============================================================================

class TestLoad:

    def test_load_replaces_contents(self, store: RecordStore) -> None:
        count = store.load([make_report(9)])
        assert count == 1
        assert store.ids() == (9,)

    def test_load_keeps_incoming_order(self) -> None:
        store = RecordStore()
        store.load([make_report(3), make_report(1), make_report(2)])
        assert store.ids() == (3, 1, 2)

    def test_load_accepts_generator(self) -> None:
        store = RecordStore()
        store.load(make_report(i) for i in range(1, 4))
        assert len(store) == 3

    def test_duplicate_ids_rejected_and_store_unchanged(self, store: RecordStore) -> None:
        with pytest.raises(ValidationError) as exc_info:
            store.load([make_report(4), make_report(4)])
        assert exc_info.value.field == "id"
        assert store.ids() == (1, 2, 5)

    def test_snapshot_is_detached(self, store: RecordStore) -> None:
        snapshot = store.snapshot()
        store.load([])
        assert len(snapshot) == 3
        assert len(store) == 0


# =============================================================================
# Test create()
# =============================================================================

class TestCreate:

    def test_id_is_max_plus_one(self, store: RecordStore) -> None:
        record = store.create(ReportDraft(product_name="Desk", amount="10"))
        assert record.id == 6

    def test_first_id_in_empty_store_is_one(self) -> None:
        record = RecordStore().create(ReportDraft(product_name="Desk", amount="10"))
        assert record.id == 1

    def test_new_record_goes_first(self, store: RecordStore) -> None:
        record = store.create(ReportDraft(product_name="Desk", amount="10"))
        assert store.snapshot()[0] == record

    def test_form_defaults_applied(self, store: RecordStore) -> None:
        record = store.create(ReportDraft(product_name="Desk", amount="10"))
        assert record.category == "Electronics"
        assert record.region == "District 1"
        assert record.sale_date == date(2026, 2, 14)
        assert record.amount == Decimal("10.00")

    def test_supplied_fields_kept(self, store: RecordStore) -> None:
        record = store.create(ReportDraft(
            product_name="Chair", category="Furniture", amount="99.99",
            sale_date="2026-01-31", region="West",
        ))
        assert (record.category, record.region, record.sale_date) == ("Furniture", "West", date(2026, 1, 31))

    def test_malformed_amount_leaves_store_unchanged(self, store: RecordStore) -> None:
        before = store.snapshot()
        with pytest.raises(ValidationError):
            store.create(ReportDraft(product_name="Desk", amount="abc"))
        assert store.snapshot() == before

    def test_id_follows_max_of_reloaded_set(self, store: RecordStore) -> None:
        store.load([make_report(3)])
        record = store.create(ReportDraft(product_name="Desk", amount="1"))
        assert record.id == 4


# =============================================================================
# Test update()
# =============================================================================

class TestUpdate:

    def test_partial_update_merges(self, store: RecordStore) -> None:
        original = store.get(2)
        updated = store.update(2, ReportDraft(amount="250"))
        assert updated.id == 2
        assert updated.amount == Decimal("250.00")
        assert updated.product_name == original.product_name
        assert updated.region == original.region

    def test_position_preserved(self, store: RecordStore) -> None:
        store.update(2, ReportDraft(product_name="Renamed"))
        assert store.ids() == (1, 2, 5)
        assert store.snapshot()[1].product_name == "Renamed"

    def test_missing_id_raises_not_found(self, store: RecordStore) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            store.update(42, ReportDraft(amount="1"))
        assert exc_info.value.record_id == 42
        assert exc_info.value.error_code == "RPT-003"

    def test_validation_checked_before_lookup(self, store: RecordStore) -> None:
        with pytest.raises(ValidationError):
            store.update(42, ReportDraft(amount="abc"))

    def test_invalid_amount_leaves_record_unchanged(self, store: RecordStore) -> None:
        before = store.get(2)
        with pytest.raises(ValidationError):
            store.update(2, ReportDraft(amount="abc"))
        assert store.get(2) == before


# =============================================================================
# Test validate_draft()
# =============================================================================

class TestValidateDraft:

    def test_create_requires_product_name(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_draft(ReportDraft(product_name="  ", amount="1"), for_create=True)
        assert exc_info.value.field == "productName"

    def test_create_requires_amount(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_draft(ReportDraft(product_name="Desk"), for_create=True)
        assert exc_info.value.field == "amount"

    def test_update_may_be_empty(self) -> None:
        validated = validate_draft(ReportDraft(), for_create=False)
        assert validated.amount is None
        assert validated.sale_date is None

    def test_unparseable_date_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_draft(ReportDraft(sale_date="soon"), for_create=False)
        assert exc_info.value.field == "saleDate"
