"""Pydantic schemas describing property listings as the API returns them."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MARKETING_CATEGORY_KEYS = (
    "popular",
    "near_university",
    "top_rated",
    "special_needs",
    "cheap",
    "recently_viewed",
)


class PointGeometry(BaseModel):
    type: str = "Point"
    coordinates: list[float] = Field(default_factory=list)


class PropertyAttributes(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    title: str = ""
    name: str = ""
    description: str = ""
    property_type: str = ""
    property_type_display: Optional[str] = None
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    toilets: Optional[int] = None
    address: str = ""
    city: Any = None
    available_from: Optional[str] = None
    lease_duration: Optional[int] = None
    is_furnished: bool = False
    is_available: bool = True
    is_fenced: bool = False
    windows_type: Optional[str] = None
    windows_type_display: Optional[str] = None
    electricity_type: Optional[str] = None
    electricity_type_display: Optional[str] = None
    water_supply: bool = False
    size: Optional[float] = None
    rating: Optional[float] = None
    review_count: int = 0
    safety_score: Optional[str] = None
    transportation_score: Optional[str] = None
    amenities_score: Optional[str] = None
    overall_score: Optional[str] = None
    distance_to_university: Optional[float] = None
    amenity_ids: list[int] = Field(default_factory=list)
    primary_image: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyMedia(BaseModel):
    id: Optional[int] = None
    media_type: str = "image"
    url: str
    display_order: int = 0
    is_primary: bool = False
    created_at: Optional[str] = None


class PropertyAmenity(BaseModel):
    id: Optional[int] = None
    amenity: Optional[int] = None
    amenity_name: str = ""
    amenity_description: str = ""
    amenity_icon: str = ""


class Place(BaseModel):
    id: Optional[int] = None
    name: str = ""
    place_type: str = ""
    place_type_display: str = ""
    address: str = ""
    geometry: Optional[PointGeometry] = None


class NearbyPlace(BaseModel):
    id: Optional[int] = None
    place: Place
    distance: Optional[float] = None
    walking_time: Optional[float] = None


class PropertyFeature(BaseModel):
    """A listing wrapped as a GeoJSON ``Feature``; coordinates are ``[lng, lat]``."""

    model_config = ConfigDict(extra="allow")

    id: int | str
    type: str = "Feature"
    geometry: Optional[PointGeometry] = None
    properties: PropertyAttributes = Field(default_factory=PropertyAttributes)
    images: list[Any] = Field(default_factory=list)
    videos: list[Any] = Field(default_factory=list)
    primary_image: Optional[str] = None
    media: list[PropertyMedia] = Field(default_factory=list)
    amenities: list[PropertyAmenity] = Field(default_factory=list)
    nearby_places: list[NearbyPlace] = Field(default_factory=list)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        coords = self.geometry.coordinates if self.geometry else []
        if len(coords) < 2:
            return None
        return coords[0], coords[1]

    @property
    def title(self) -> str:
        return self.properties.title or self.properties.name or f"Property {self.id}"

    @property
    def price(self) -> float | None:
        return self.properties.price

    @property
    def address(self) -> str:
        return self.properties.address

    @property
    def is_available(self) -> bool:
        return self.properties.is_available

    @property
    def image_urls(self) -> list[str]:
        urls: list[str] = []
        for image in self.images:
            url = image.get("url") if isinstance(image, dict) else image
            if isinstance(url, str) and url:
                urls.append(url)
        if not urls:
            urls = [item.url for item in self.media if item.media_type == "image"]
        return urls

    @property
    def video_urls(self) -> list[str]:
        urls = [video.get("url") if isinstance(video, dict) else video for video in self.videos]
        urls = [url for url in urls if isinstance(url, str) and url]
        return urls or [item.url for item in self.media if item.media_type == "video"]

    @property
    def cover_image(self) -> str | None:
        if self.primary_image:
            return self.primary_image
        if self.properties.primary_image:
            return self.properties.primary_image
        urls = self.image_urls
        return urls[0] if urls else None


class MarketingCategories(BaseModel):
    popular: list[PropertyFeature] = Field(default_factory=list)
    near_university: list[PropertyFeature] = Field(default_factory=list)
    top_rated: list[PropertyFeature] = Field(default_factory=list)
    special_needs: list[PropertyFeature] = Field(default_factory=list)
    cheap: list[PropertyFeature] = Field(default_factory=list)
    recently_viewed: list[PropertyFeature] = Field(default_factory=list)

    @field_validator(*MARKETING_CATEGORY_KEYS, mode="before")
    @classmethod
    def _unwrap_collection(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return value.get("features") or []
        return value

    def is_empty(self) -> bool:
        return not any(getattr(self, key) for key in MARKETING_CATEGORY_KEYS)


class PropertyForm(BaseModel):
    """Values a broker submits from the create/edit listing form."""

    title: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    property_type: str = Field(min_length=1)
    price: float = Field(gt=0)
    bedrooms: int = Field(default=0, ge=0)
    toilets: int = Field(default=0, ge=0)
    address: str = ""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    size: float = Field(default=0, ge=0)
    available_from: str = ""
    lease_duration: int = Field(default=12, ge=0)
    is_furnished: bool = False
    is_available: bool = True
    is_fenced: bool = False
    windows_type: str = ""
    electricity_type: str = ""
    water_supply: bool = False
    amenity_ids: list[int] = Field(default_factory=list)

    @property
    def geometry(self) -> dict[str, Any]:
        coords = [self.longitude or 0.0, self.latitude or 0.0]
        return {"type": "Point", "coordinates": coords}


class Amenity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str = ""
    description: str = ""
    icon: str = ""


class University(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str = ""
    abbreviation: str = ""
    location: Any = None
