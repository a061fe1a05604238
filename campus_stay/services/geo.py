"""Map helpers: bounds and marker payloads handed to Mapbox GL JS."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from ..core.jinja import format_price
from ..schemas.property import PropertyFeature

# Dar es Salaam, [lng, lat].
DEFAULT_CENTER = (39.2083, -6.7924)
DEFAULT_ZOOM = 15
FIT_PADDING = 50
MAX_ZOOM = 15
BOUNDS_PADDING = 0.01

Bounds = tuple[tuple[float, float], tuple[float, float]]


def _valid_coordinates(feature: PropertyFeature) -> tuple[float, float] | None:
    coords = feature.geometry.coordinates if feature.geometry else []
    if len(coords) != 2:
        return None
    return coords[0], coords[1]


def calculate_bounds(features: Iterable[PropertyFeature]) -> Optional[Bounds]:
    """South-west and north-east corners around every plotted listing."""

    points = [coords for coords in map(_valid_coordinates, features) if coords is not None]
    if not points:
        return None
    lngs = [lng for lng, _ in points]
    lats = [lat for _, lat in points]
    return (
        (min(lngs) - BOUNDS_PADDING, min(lats) - BOUNDS_PADDING),
        (max(lngs) + BOUNDS_PADDING, max(lats) + BOUNDS_PADDING),
    )


def popup_fields(feature: PropertyFeature) -> dict[str, Any]:
    attrs = feature.properties
    details = []
    if attrs.bedrooms is not None:
        details.append(f"{attrs.bedrooms} beds")
    if attrs.size:
        details.append(f"{attrs.size:g} sqft")
    price = format_price(attrs.price)
    return {
        "id": feature.id,
        "title": feature.title,
        "price": f"{price}/month" if price else "",
        "details": " | ".join(details),
        "image": feature.cover_image,
        "url": f"/properties/{feature.id}",
    }


def marker_collection(features: Iterable[PropertyFeature], active_id: int | str | None = None) -> dict[str, Any]:
    items = []
    for feature in features:
        coords = _valid_coordinates(feature)
        if coords is None:
            continue
        props = popup_fields(feature)
        props["active"] = active_id is not None and str(feature.id) == str(active_id)
        items.append(
            {
                "type": "Feature",
                "id": feature.id,
                "geometry": {"type": "Point", "coordinates": [coords[0], coords[1]]},
                "properties": props,
            }
        )
    return {"type": "FeatureCollection", "features": items}


def map_payload(features: Iterable[PropertyFeature], active_id: int | str | None = None) -> dict[str, Any]:
    features = list(features)
    bounds = calculate_bounds(features)
    return {
        "markers": marker_collection(features, active_id),
        "bounds": [list(bounds[0]), list(bounds[1])] if bounds else None,
        "center": list(DEFAULT_CENTER),
        "zoom": DEFAULT_ZOOM,
        "fit": {"padding": FIT_PADDING, "maxZoom": MAX_ZOOM},
    }
