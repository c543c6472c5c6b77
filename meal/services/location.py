# meal/services/location.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Tuple

from .types import UNKNOWN

UNKNOWN_LOCATION = "Unknown Location"


@dataclass(frozen=True)
class Place:
    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN


@dataclass(frozen=True)
class LocationInfo:
    location: str = UNKNOWN_LOCATION
    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN


class LocationResolver(Protocol):
    def resolve(self, lat: float, lng: float) -> Optional[Place]:
        ...


@dataclass(frozen=True)
class BoundingBox:
    lat_min: float
    lat_max: float
    lng_min: float
    lng_max: float
    place: Place

    def contains(self, lat: float, lng: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lng_min <= lng <= self.lng_max


# Only these two areas are recognised; anything else stays Unknown.
DEFAULT_BOXES = (
    BoundingBox(-18, -15, 30, 33, Place("Zimbabwe", "Harare Province", "Harare")),
    BoundingBox(-40, -35, 140, 150, Place("Australia", "Victoria", "Melbourne")),
)


class BoundingBoxResolver:
    """Coarse reverse geocoding against a fixed list of boxes, first box wins."""

    def __init__(self, boxes: Tuple[BoundingBox, ...] = DEFAULT_BOXES):
        self.boxes = tuple(boxes)

    def resolve(self, lat: float, lng: float) -> Optional[Place]:
        for box in self.boxes:
            if box.contains(lat, lng):
                return box.place
        return None


default_resolver = BoundingBoxResolver()


def split_coordinates(coordinates: Optional[str]) -> Optional[Tuple[float, float]]:
    """'lat, lng' -> (lat, lng), or None when the string is not two numbers."""
    if not coordinates:
        return None
    parts = str(coordinates).split(", ")
    if len(parts) != 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None


def infer_location(
    metadata: Dict[str, Any],
    form_data: Dict[str, Any],
    coordinates: Optional[str],
    resolver: Optional[LocationResolver] = None,
) -> LocationInfo:
    resolver = resolver or default_resolver

    # 1) GPS coordinates
    if coordinates:
        pair = split_coordinates(coordinates)
        if pair is None:
            return LocationInfo()
        lat, lng = pair
        place = resolver.resolve(lat, lng) or Place()
        return LocationInfo(
            location=f"{lat:.6f}, {lng:.6f}",
            country=place.country,
            region=place.region,
            city=place.city,
        )

    # 2) location captured with the submission metadata
    meta_location = metadata.get("location")
    if meta_location and meta_location != UNKNOWN_LOCATION:
        return LocationInfo(
            location=str(meta_location),
            country=metadata.get("country") or UNKNOWN,
            region=metadata.get("region") or UNKNOWN,
            city=metadata.get("city") or UNKNOWN,
        )

    # 3) district answered in the form
    district = form_data.get("district")
    if district:
        return LocationInfo(location=str(district), country="Zimbabwe", region=UNKNOWN, city=str(district))

    return LocationInfo()
