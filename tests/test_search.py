"""Tests for browse filters, client-side filtering and pagination."""

import os
import sys
from pathlib import Path
from urllib.parse import parse_qsl

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://api.test/api")

from campus_stay.schemas.property import PropertyFeature
from campus_stay.services.search import (
    DEFAULT_MAX_PRICE,
    SearchFilters,
    clean_filters,
    filter_properties,
    paginate,
    sort_properties,
)


def feature(pk, **attrs):
    return PropertyFeature.model_validate(
        {"id": pk, "geometry": {"type": "Point", "coordinates": [39.2, -6.8]}, "properties": attrs}
    )


def test_defaults_are_not_sent_to_the_api():
    filters = SearchFilters.from_query({})

    assert filters.min_price == 0
    assert filters.max_price == DEFAULT_MAX_PRICE
    assert filters.to_api_params() == {}


def test_api_params_translate_names():
    filters = SearchFilters.from_query(
        {"search": " mikocheni ", "min_price": "100000", "max_price": "300000", "types": "room,hostel",
         "bedrooms": "2", "bathrooms": "1", "ordering": "-price", "page": "3"}
    )

    assert filters.to_api_params() == {
        "search": "mikocheni",
        "min_price": 100000,
        "max_price": 300000,
        "property_type": "room",
        "bedrooms": 2,
        "toilets": 1,
        "ordering": "-price",
        "page": 3,
    }


def test_junk_query_values_fall_back_to_defaults():
    filters = SearchFilters.from_query({"min_price": "-5", "max_price": "abc", "page": "0", "bedrooms": "many"})

    assert filters.min_price == 0
    assert filters.max_price == DEFAULT_MAX_PRICE
    assert filters.page == 1
    assert filters.bedrooms is None


def test_query_string_round_trips():
    filters = SearchFilters.from_query({"search": "kariakoo", "types": "room,studio", "max_price": "200000"})
    again = SearchFilters.from_query(dict(parse_qsl(filters.to_query_string())))

    assert again == filters
    assert "page" not in filters.to_query_params()
    assert filters.to_query_params(page=2)["page"] == 2


def test_active_filters_and_clear_filter():
    filters = SearchFilters.from_query({"search": "x", "min_price": "5000", "types": "room,hostel", "page": "4"})

    assert filters.active_filters() == ["search", "price", "types"]
    cleared = filters.clear_filter("types", "room")
    assert cleared.types == ["hostel"]
    assert cleared.page == 1
    assert filters.clear_filter("price").min_price == 0
    assert filters.clear_filter("unknown") is filters


def test_clean_filters_drops_empty_values():
    assert clean_filters({"a": None, "b": "", "c": 0, "d": False}) == {"c": 0, "d": False}


def test_filter_properties_matches_exact_bedrooms_and_price_range():
    items = [
        feature(1, title="Cosy room", price=150000, bedrooms=1, toilets=1, property_type="room"),
        feature(2, title="Big house", price=450000, bedrooms=3, toilets=2, property_type="house"),
        feature(3, title="Hostel bed", price=80000, bedrooms=1, toilets=1, property_type="hostel"),
    ]
    filters = SearchFilters(min_price=100000, max_price=400000, bedrooms=1)

    assert [item.id for item in filter_properties(items, filters)] == [1]
    assert [item.id for item in filter_properties(items, SearchFilters(search="HOUSE"))] == [2]
    assert [item.id for item in filter_properties(items, SearchFilters(types=["hostel"]))] == [3]


def test_sort_properties_puts_missing_values_last():
    items = [feature(1, price=300), feature(2), feature(3, price=100)]

    assert [item.id for item in sort_properties(items, "price")] == [3, 1, 2]
    assert [item.id for item in sort_properties(items, "-price")] == [1, 3, 2]
    assert [item.id for item in sort_properties(items, "")] == [1, 2, 3]
    assert [item.id for item in sort_properties(items, "__class__")] == [1, 2, 3]


def test_paginate_limits_window_to_five_pages():
    page = paginate(95, 6, next_url="http://api/?page=7", previous_url="http://api/?page=5")

    assert page.total_pages == 10
    assert page.pages == [4, 5, 6, 7, 8]
    assert page.has_next and page.has_previous


def test_paginate_empty_result():
    page = paginate(0, 1)

    assert page.total_pages == 0
    assert page.pages == []
    assert not page.has_next
