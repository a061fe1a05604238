"""Tests for listing calls and the broker form conversions."""

import asyncio
import json
import os
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://api.test/api")

from campus_stay.schemas.common import Page
from campus_stay.schemas.property import MarketingCategories, PropertyFeature, PropertyForm
from campus_stay.services.api_client import ApiClient, ApiError
from campus_stay.services.properties import (
    MAX_VIDEO_BYTES,
    PropertyService,
    Upload,
    UploadRejected,
    feature_to_form,
    form_to_feature,
    form_to_multipart,
    validate_uploads,
)

BASE = "http://api.test/api"

FEATURE = {
    "id": 12,
    "type": "Feature",
    "geometry": {"type": "Point", "coordinates": [39.25, -6.77]},
    "properties": {"title": "Mwenge studio", "price": "180000.00", "bedrooms": 1, "toilets": 1, "is_available": True},
    "images": [{"url": "http://cdn/1.jpg"}, "http://cdn/2.jpg"],
}


def service_for(handler):
    return PropertyService(ApiClient(base_url=BASE, transport=httpx.MockTransport(handler)))


def make_form(**overrides):
    values = {
        "title": "Mwenge studio",
        "property_type": "studio",
        "price": 180000,
        "bedrooms": 1,
        "toilets": 1,
        "latitude": -6.77,
        "longitude": 39.25,
        "amenity_ids": [2, 5],
        "is_furnished": True,
    }
    values.update(overrides)
    return PropertyForm.model_validate(values)


def test_page_accepts_feature_collection_results():
    page = Page[PropertyFeature].from_payload(
        {"count": 1, "next": None, "previous": None, "results": {"type": "FeatureCollection", "features": [FEATURE]}}
    )

    assert page.count == 1
    assert page.results[0].title == "Mwenge studio"
    assert page.results[0].coordinates == (39.25, -6.77)


def test_page_accepts_bare_list():
    page = Page[PropertyFeature].from_payload([FEATURE, {**FEATURE, "id": 13}])

    assert page.count == 2
    assert not page.has_next


def test_feature_helpers():
    feature = PropertyFeature.model_validate(FEATURE)

    assert feature.price == 180000.0
    assert feature.image_urls == ["http://cdn/1.jpg", "http://cdn/2.jpg"]
    assert feature.cover_image == "http://cdn/1.jpg"


def test_marketing_categories_unwrap_collections():
    categories = MarketingCategories.model_validate(
        {"popular": {"type": "FeatureCollection", "features": [FEATURE]}, "cheap": [FEATURE], "top_rated": None}
    )

    assert len(categories.popular) == 1
    assert len(categories.cheap) == 1
    assert categories.top_rated == []
    assert not categories.is_empty()


def test_list_properties_sends_filters():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"count": 1, "results": [FEATURE]})

    page = asyncio.run(service_for(handler).list_properties({"property_type": "studio", "search": ""}))

    assert seen["params"] == {"property_type": "studio"}
    assert page.results[0].id == 12


def test_get_property_returns_none_on_404():
    def handler(request):
        return httpx.Response(404, json={"detail": "Not found."})

    assert asyncio.run(service_for(handler).get_property(99)) is None


def test_marketing_failure_raises_user_message():
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(ApiError) as excinfo:
        asyncio.run(service_for(handler).marketing_categories(limit=8))

    assert excinfo.value.message == "Error loading properties"


def test_form_to_multipart_encodes_booleans_lists_and_geometry():
    data = form_to_multipart(make_form(), broker_id=4)

    assert data["type"] == "Feature"
    assert json.loads(data["geometry"]) == {"type": "Point", "coordinates": [39.25, -6.77]}
    assert data["is_furnished"] == "true"
    assert data["is_fenced"] == "false"
    assert json.loads(data["amenity_ids"]) == [2, 5]
    assert data["broker"] == "4"


def test_form_to_feature_for_put():
    payload = form_to_feature(make_form())

    assert payload["type"] == "Feature"
    assert payload["properties"]["name"] == "Mwenge studio"
    assert "overall_score" not in payload["properties"]


def test_feature_to_form_fills_coordinates():
    form = feature_to_form(PropertyFeature.model_validate(FEATURE))

    assert form.latitude == -6.77
    assert form.longitude == 39.25
    assert form.title == "Mwenge studio"


def test_property_form_requires_positive_price():
    with pytest.raises(ValueError):
        make_form(price=0)


def test_upload_limits():
    images = [Upload(f"{index}.jpg", b"x") for index in range(6)]
    with pytest.raises(UploadRejected):
        validate_uploads(images)
    with pytest.raises(UploadRejected):
        validate_uploads([], Upload("clip.mp4", b"0" * MAX_VIDEO_BYTES))
    assert validate_uploads([Upload("a.jpg", b"x"), Upload("empty.jpg", b"")]) == [Upload("a.jpg", b"x")]


def test_create_property_posts_multipart():
    seen = {}

    def handler(request):
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.content
        return httpx.Response(201, json=FEATURE)

    created = asyncio.run(
        service_for(handler).create_property(make_form(), 4, images=[Upload("room.jpg", b"jpeg-bytes", "image/jpeg")])
    )

    assert seen["content_type"].startswith("multipart/form-data")
    assert b'name="images"; filename="room.jpg"' in seen["body"]
    assert isinstance(created, PropertyFeature)


def test_add_amenity_requires_name():
    with pytest.raises(ApiError):
        asyncio.run(service_for(lambda request: httpx.Response(201, json={})).add_amenity("  "))
