"""Property listing calls plus the helpers that convert broker forms to API payloads."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, NamedTuple

from ..schemas.common import Page
from ..schemas.property import (
    Amenity,
    MarketingCategories,
    PropertyFeature,
    PropertyForm,
    University,
)
from .api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

PROPERTIES_ENDPOINT = "/properties/"
MARKETING_ENDPOINT = "/properties/marketing-categories/"
AMENITIES_ENDPOINT = "/amenities/"
UNIVERSITIES_ENDPOINT = "/universities/"

MAX_IMAGES = 5
MAX_VIDEO_BYTES = 10 * 1024 * 1024


class Upload(NamedTuple):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class UploadRejected(ValueError):
    """Raised when listing media breaks the upload limits."""


def form_attributes(form: PropertyForm) -> dict[str, Any]:
    """Flat attribute map the API stores under a feature's ``properties``."""

    return {
        "name": form.name or form.title,
        "title": form.title,
        "description": form.description,
        "property_type": form.property_type,
        "price": str(form.price),
        "bedrooms": form.bedrooms,
        "toilets": form.toilets,
        "address": form.address,
        "available_from": form.available_from,
        "lease_duration": form.lease_duration,
        "is_furnished": form.is_furnished,
        "is_available": form.is_available,
        "is_fenced": form.is_fenced,
        "windows_type": form.windows_type,
        "electricity_type": form.electricity_type,
        "water_supply": form.water_supply,
        "size": str(form.size),
        "amenity_ids": list(form.amenity_ids),
    }


def form_to_feature(form: PropertyForm) -> dict[str, Any]:
    return {"type": "Feature", "geometry": form.geometry, "properties": form_attributes(form)}


def form_to_multipart(form: PropertyForm, broker_id: str | int) -> dict[str, str]:
    """Encode a listing for ``multipart/form-data``.

    Booleans go out as ``"true"``/``"false"``; lists and the geometry as JSON.
    """

    data: dict[str, str] = {"type": "Feature", "geometry": json.dumps(form.geometry)}
    for key, value in form_attributes(form).items():
        if isinstance(value, bool):
            data[key] = "true" if value else "false"
        elif isinstance(value, (list, dict)):
            data[key] = json.dumps(value)
        else:
            data[key] = str(value)
    data["broker"] = str(broker_id)
    return data


def feature_to_form(feature: PropertyFeature) -> PropertyForm:
    attrs = feature.properties
    coords = feature.coordinates
    return PropertyForm.model_construct(
        title=attrs.title or feature.title,
        name=attrs.name,
        description=attrs.description,
        property_type=attrs.property_type,
        price=attrs.price or 0,
        bedrooms=attrs.bedrooms or 0,
        toilets=attrs.toilets or 0,
        address=attrs.address,
        latitude=coords[1] if coords else None,
        longitude=coords[0] if coords else None,
        size=attrs.size or 0,
        available_from=attrs.available_from or "",
        lease_duration=attrs.lease_duration or 0,
        is_furnished=attrs.is_furnished,
        is_available=attrs.is_available,
        is_fenced=attrs.is_fenced,
        windows_type=attrs.windows_type or "",
        electricity_type=attrs.electricity_type or "",
        water_supply=attrs.water_supply,
        amenity_ids=list(attrs.amenity_ids),
    )


def validate_uploads(images: Iterable[Upload], video: Upload | None = None) -> list[Upload]:
    items = [image for image in images if image.content]
    if len(items) > MAX_IMAGES:
        raise UploadRejected(f"You can upload at most {MAX_IMAGES} images")
    if video is not None and len(video.content) >= MAX_VIDEO_BYTES:
        raise UploadRejected("Video must be smaller than 10MB")
    return items


class PropertyService:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def _page(self, endpoint: str, params: Mapping[str, Any] | None, failure: str) -> Page[PropertyFeature]:
        result = await self.client.get(endpoint, params=params)
        result.raise_for_error(failure)
        return Page[PropertyFeature].from_payload(result.data)

    async def list_properties(self, filters: Mapping[str, Any] | None = None) -> Page[PropertyFeature]:
        return await self._page(PROPERTIES_ENDPOINT, filters, "Failed to fetch properties")

    async def get_property(self, property_id: int | str) -> PropertyFeature | None:
        result = await self.client.get(f"{PROPERTIES_ENDPOINT}{property_id}/")
        if result.status == 404:
            return None
        result.raise_for_error(f"Failed to fetch property {property_id}")
        return PropertyFeature.model_validate(result.data)

    async def create_property(
        self,
        form: PropertyForm,
        broker_id: str | int,
        images: Iterable[Upload] = (),
        video: Upload | None = None,
    ) -> PropertyFeature | dict:
        files: list[tuple[str, tuple[str, bytes, str]]] = [
            ("images", (image.filename, image.content, image.content_type))
            for image in validate_uploads(images, video)
        ]
        if video is not None and video.content:
            files.append(("video", (video.filename, video.content, video.content_type)))
        result = await self.client.post(
            PROPERTIES_ENDPOINT,
            data=form_to_multipart(form, broker_id),
            files=files or None,
        )
        result.raise_for_error(None)
        logger.info("property.created", extra={"extra_data": {"broker": str(broker_id)}})
        payload = result.data if isinstance(result.data, dict) else {}
        if "properties" in payload and "id" in payload:
            return PropertyFeature.model_validate(payload)
        return payload

    async def update_property(self, property_id: int | str, form: PropertyForm) -> PropertyFeature:
        result = await self.client.put(f"{PROPERTIES_ENDPOINT}{property_id}/", json=form_to_feature(form))
        result.raise_for_error(None)
        return PropertyFeature.model_validate(result.data)

    async def patch_property(self, property_id: int | str, changes: Mapping[str, Any]) -> dict:
        result = await self.client.patch(f"{PROPERTIES_ENDPOINT}{property_id}/", json=dict(changes))
        result.raise_for_error(None)
        return result.data if isinstance(result.data, dict) else {}

    async def delete_property(self, property_id: int | str) -> bool:
        result = await self.client.delete(f"{PROPERTIES_ENDPOINT}{property_id}/")
        result.raise_for_error(f"Failed to delete property {property_id}")
        logger.info("property.deleted", extra={"extra_data": {"property_id": str(property_id)}})
        return True

    async def properties_near_university(self, distance: float | None = None) -> Page[PropertyFeature]:
        return await self._page(
            f"{PROPERTIES_ENDPOINT}near-university/",
            {"distance": distance},
            "Failed to fetch properties near university",
        )

    async def my_properties(self) -> Page[PropertyFeature]:
        return await self._page(f"{PROPERTIES_ENDPOINT}my-properties/", None, "Failed to fetch my properties")

    async def marketing_categories(
        self, limit: int | None = None, distance: float | None = None
    ) -> MarketingCategories:
        result = await self.client.get(MARKETING_ENDPOINT, params={"limit": limit, "distance": distance})
        result.raise_for_error("Error loading properties")
        payload = result.data if isinstance(result.data, dict) else {}
        return MarketingCategories.model_validate(payload)

    async def amenities(self) -> list[Amenity]:
        result = await self.client.get(AMENITIES_ENDPOINT)
        result.raise_for_error("Failed to load amenities")
        return Page[Amenity].from_payload(result.data).results

    async def add_amenity(self, name: str, description: str = "") -> Amenity:
        if not name.strip():
            raise ApiError(400, "Amenity name is required")
        result = await self.client.post(AMENITIES_ENDPOINT, json={"name": name.strip(), "description": description})
        result.raise_for_error(None)
        return Amenity.model_validate(result.data)

    async def universities(self) -> list[University]:
        result = await self.client.get(UNIVERSITIES_ENDPOINT)
        result.raise_for_error("Failed to load universities")
        return Page[University].from_payload(result.data).results

    async def add_university(self, name: str, location: str) -> University:
        if not name.strip() or not location.strip():
            raise ApiError(400, "University name and location are required")
        result = await self.client.post(
            UNIVERSITIES_ENDPOINT, json={"name": name.strip(), "location": location.strip()}
        )
        result.raise_for_error(None)
        return University.model_validate(result.data)
