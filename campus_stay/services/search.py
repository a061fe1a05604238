"""Browse-page filters: query string parsing, API parameters and pagination."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, NamedTuple, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field, field_validator

from ..schemas.property import PropertyAttributes, PropertyFeature

DEFAULT_MIN_PRICE = 0
DEFAULT_MAX_PRICE = 500_000
DEFAULT_PAGE_SIZE = 10
PAGE_WINDOW = 5


class SortOption(NamedTuple):
    value: str
    label: str


SORT_OPTIONS = [
    SortOption("", "Relevance"),
    SortOption("price", "Price: Low to High"),
    SortOption("-price", "Price: High to Low"),
    SortOption("-created_at", "Newest"),
    SortOption("created_at", "Oldest"),
    SortOption("-rating", "Top Rated"),
]

PROPERTY_TYPES = [
    ("apartment", "Apartment"),
    ("house", "House"),
    ("room", "Single Room"),
    ("hostel", "Hostel"),
    ("studio", "Studio"),
]


def clean_filters(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop keys whose value is ``None`` or an empty string."""

    if not filters:
        return {}
    return {key: value for key, value in filters.items() if value is not None and value != ""}


def _int_or_none(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


class SearchFilters(BaseModel):
    search: str = ""
    min_price: int = DEFAULT_MIN_PRICE
    max_price: int = DEFAULT_MAX_PRICE
    types: list[str] = Field(default_factory=list)
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    ordering: str = ""
    page: int = 1

    @field_validator("types", mode="before")
    @classmethod
    def _split_types(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("bedrooms", "bathrooms", mode="before")
    @classmethod
    def _optional_int(cls, value: Any) -> Any:
        return _int_or_none(value)

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "SearchFilters":
        """Build filters from request query params, falling back to defaults on junk input."""

        min_price = _int_or_none(query.get("min_price"))
        max_price = _int_or_none(query.get("max_price"))
        page = _int_or_none(query.get("page"))
        return cls(
            search=(query.get("search") or "").strip(),
            min_price=min_price if min_price is not None and min_price >= 0 else DEFAULT_MIN_PRICE,
            max_price=max_price if max_price is not None and max_price > 0 else DEFAULT_MAX_PRICE,
            types=query.get("types") or [],
            bedrooms=query.get("bedrooms"),
            bathrooms=query.get("bathrooms"),
            ordering=query.get("ordering") or "",
            page=page if page and page > 0 else 1,
        )

    def to_api_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.search:
            params["search"] = self.search
        if self.min_price > DEFAULT_MIN_PRICE:
            params["min_price"] = self.min_price
        if self.max_price < DEFAULT_MAX_PRICE:
            params["max_price"] = self.max_price
        if self.types:
            params["property_type"] = self.types[0]
        if self.bedrooms is not None:
            params["bedrooms"] = self.bedrooms
        if self.bathrooms is not None:
            params["toilets"] = self.bathrooms
        if self.ordering:
            params["ordering"] = self.ordering
        if self.page > 1:
            params["page"] = self.page
        return params

    def to_query_params(self, **overrides: Any) -> dict[str, Any]:
        params: dict[str, Any] = {
            "search": self.search,
            "min_price": self.min_price if self.min_price > DEFAULT_MIN_PRICE else None,
            "max_price": self.max_price if self.max_price < DEFAULT_MAX_PRICE else None,
            "types": ",".join(self.types),
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "ordering": self.ordering,
            "page": self.page if self.page > 1 else None,
        }
        params.update(overrides)
        return clean_filters(params)

    def to_query_string(self, **overrides: Any) -> str:
        return urlencode(self.to_query_params(**overrides))

    def active_filters(self) -> list[str]:
        active: list[str] = []
        if self.search:
            active.append("search")
        if self.min_price > DEFAULT_MIN_PRICE or self.max_price < DEFAULT_MAX_PRICE:
            active.append("price")
        if self.types:
            active.append("types")
        if self.bedrooms is not None:
            active.append("bedrooms")
        if self.bathrooms is not None:
            active.append("bathrooms")
        return active

    def clear_filter(self, key: str, value: str | None = None) -> "SearchFilters":
        """Return a copy without ``key``; ``types`` can drop a single ``value``."""

        updates: dict[str, Any] = {"page": 1}
        if key == "price":
            updates.update(min_price=DEFAULT_MIN_PRICE, max_price=DEFAULT_MAX_PRICE)
        elif key == "types":
            updates["types"] = [item for item in self.types if value is not None and item != value]
        elif key in {"search", "ordering"}:
            updates[key] = ""
        elif key in {"bedrooms", "bathrooms"}:
            updates[key] = None
        else:
            return self
        return self.model_copy(update=updates)


def filter_properties(features: Iterable[PropertyFeature], filters: SearchFilters) -> list[PropertyFeature]:
    """Apply the browse filters to an already fetched list."""

    needle = filters.search.lower()
    matched: list[PropertyFeature] = []
    for feature in features:
        attrs = feature.properties
        if needle and needle not in " ".join(
            [attrs.title, attrs.name, attrs.address, attrs.description]
        ).lower():
            continue
        price = attrs.price
        if price is not None and not (filters.min_price <= price <= filters.max_price):
            continue
        if filters.types and attrs.property_type not in filters.types:
            continue
        if filters.bedrooms is not None and attrs.bedrooms != filters.bedrooms:
            continue
        if filters.bathrooms is not None and attrs.toilets != filters.bathrooms:
            continue
        matched.append(feature)
    return matched


def sort_properties(features: Iterable[PropertyFeature], ordering: str) -> list[PropertyFeature]:
    items = list(features)
    if not ordering:
        return items
    reverse = ordering.startswith("-")
    field = ordering.lstrip("-")
    if field not in PropertyAttributes.model_fields:
        return items

    def key(feature: PropertyFeature) -> tuple[int, Any]:
        value = getattr(feature.properties, field, None)
        # Missing values always sort last.
        if value is None:
            return (1, 0) if not reverse else (0, 0)
        return (0, value) if not reverse else (1, value)

    return sorted(items, key=key, reverse=reverse)


class Pagination(NamedTuple):
    current: int
    total_pages: int
    pages: list[int]
    has_next: bool
    has_previous: bool


def paginate(
    count: int,
    current: int,
    page_size: int = DEFAULT_PAGE_SIZE,
    next_url: str | None = None,
    previous_url: str | None = None,
) -> Pagination:
    total_pages = math.ceil(count / page_size) if count > 0 and page_size > 0 else 0
    start = max(1, current - 2)
    pages = [number for number in range(start, start + min(PAGE_WINDOW, total_pages)) if number <= total_pages]
    return Pagination(
        current=current,
        total_pages=total_pages,
        pages=pages,
        has_next=bool(next_url),
        has_previous=bool(previous_url),
    )
