"""Tests for listing query descriptors and listing state."""
from datetime import datetime
from decimal import Decimal
import uuid

import pytest
from pydantic import ValidationError

from shiptrack.query import (
    Between,
    Equals,
    ListingState,
    SearchAny,
    build_product_query,
    normalize_search,
    owner_predicate,
    total_pages,
)
from shiptrack.schemas.filters import NumericRange, ProductFilters, ShipmentFilters


class TestBuildProductQuery:

    def test_empty_filters_have_no_predicates(self):
        q = build_product_query()
        assert q.predicates == ()
        assert q.sort_field == "created_at"
        assert q.sort_direction == "desc"
        assert (q.offset, q.limit) == (0, 20)

    def test_page_window(self):
        q = build_product_query(page=3, page_size=20)
        assert q.offset == 40
        assert q.limit == 20

    def test_search_is_or_across_fields(self):
        q = build_product_query(ProductFilters(search="  Termos "))
        assert q.predicates == (SearchAny("termos"),)
        assert "supplier.name" in q.predicates[0].fields
        assert "asin" in q.predicates[0].fields

    def test_short_search_is_ignored(self):
        """A one-character search is a no-op filter."""
        q = build_product_query(ProductFilters(search="a"))
        assert q.predicates == ()
        assert normalize_search(" x ") is None
        assert normalize_search("ab") == "ab"

    def test_ranges_apply_present_bounds_only(self):
        filters = ProductFilters(
            cost_range=NumericRange(min=Decimal("5")),
            roi_range=NumericRange(max=Decimal("100")),
            profit_range=NumericRange(),
        )
        q = build_product_query(filters)
        assert Between("product_cost", Decimal("5"), None) in q.predicates
        assert Between("roi_percentage", None, Decimal("100")) in q.predicates
        assert not any(p.field == "estimated_profit" for p in q.predicates)

    def test_equality_filters(self):
        sid = uuid.uuid4()
        q = build_product_query(ProductFilters(supplier_id=sid))
        assert q.predicates == (Equals("supplier_id", sid),)

    def test_date_range(self):
        start = datetime(2026, 1, 1)
        q = build_product_query(ProductFilters(date_range={"start": start}))
        assert q.predicates == (Between("created_at", start, None),)

    def test_rejects_unknown_sort_field(self):
        with pytest.raises(ValueError):
            build_product_query(sort_field="password")

    def test_rejects_bad_page(self):
        with pytest.raises(ValueError):
            build_product_query(page=0)
        with pytest.raises(ValueError):
            build_product_query(page_size=0)

    def test_where_appends_owner_predicate(self):
        uid = uuid.uuid4()
        q = build_product_query(ProductFilters(search="mug")).where(owner_predicate(uid))
        assert q.predicates[-1] == Equals("user_id", uid)

    def test_unpaged(self):
        q = build_product_query(page=4, page_size=10).unpaged()
        assert not q.is_paged
        assert q.page == 1


class TestClosedFilters:

    def test_unknown_filter_key_rejected(self):
        with pytest.raises(ValidationError):
            ProductFilters(serach="typo")

    def test_shipment_filters_are_separate(self):
        with pytest.raises(ValidationError):
            ShipmentFilters(cost_range={"min": 1})

    def test_shipment_date_range_order(self):
        with pytest.raises(ValidationError):
            ShipmentFilters(date_range={"start": "2026-02-01", "end": "2026-01-01"})


class TestTotalPages:

    def test_total_pages(self):
        assert total_pages(45, 20) == 3
        assert total_pages(40, 20) == 2
        assert total_pages(0, 20) == 0


class TestListingState:
    """Filter, sort and page transitions."""

    def test_filter_change_resets_page(self):
        state = ListingState().go_to_page(3)
        assert state.with_filters(search="mug").page == 1

    def test_same_filters_is_noop(self):
        """Applying an identical filter set twice resets once."""
        first = ListingState().go_to_page(2).with_filters(search="mug")
        assert first.page == 1
        moved = first.go_to_page(4)
        assert moved.with_filters(search="mug") is moved

    def test_sort_change_resets_page(self):
        state = ListingState().go_to_page(5).with_sort("name", "asc")
        assert state.page == 1
        assert state.to_query().sort_field == "name"

    def test_toggle_sort(self):
        state = ListingState().toggle_sort("name")
        assert (state.sort_field, state.sort_direction) == ("name", "asc")
        state = state.toggle_sort("name")
        assert state.sort_direction == "desc"
        state = state.toggle_sort("amazon_price")
        assert (state.sort_field, state.sort_direction) == ("amazon_price", "asc")

    def test_page_size_change_resets_page(self):
        state = ListingState().go_to_page(3).with_page_size(50)
        assert (state.page, state.page_size) == (1, 50)

    def test_clear_restores_defaults(self):
        state = ListingState(page_size=50).with_filters(search="mug").with_sort("name", "asc").go_to_page(2)
        cleared = state.clear()
        assert cleared.filters == ProductFilters()
        assert (cleared.sort_field, cleared.sort_direction, cleared.page) == ("created_at", "desc", 1)
        assert cleared.page_size == 50

    def test_to_query(self):
        q = ListingState().with_filters(search="termos").go_to_page(2).to_query()
        assert q.page == 2
        assert q.predicates == (SearchAny("termos"),)
