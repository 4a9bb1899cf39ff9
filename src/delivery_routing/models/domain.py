"""Domain models for stops, coordinates and route plans."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import InvalidInput


@dataclass(slots=True, frozen=True)
class Coordinate:
    """A WGS84 point in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidInput(f"Latitude {self.lat} is outside [-90, 90].")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidInput(f"Longitude {self.lng} is outside [-180, 180].")

    def as_lng_lat(self) -> tuple[float, float]:
        return (self.lng, self.lat)


@dataclass(slots=True, frozen=True)
class Stop:
    """A delivery stop as supplied by the order/course layer.

    A stop is positioned by its known coordinate when present, otherwise by
    geocoding its address, otherwise by the centroid of its fallback region.
    """

    id: str
    address_text: Optional[str] = None
    known_coordinate: Optional[Coordinate] = None
    fallback_region: Optional[str] = None

    def has_position_source(self) -> bool:
        return bool(
            self.known_coordinate is not None
            or (self.address_text and self.address_text.strip())
            or (self.fallback_region and self.fallback_region.strip())
        )


@dataclass(slots=True, frozen=True)
class RoutePlan:
    """Ordered visit plan for one driver."""

    ordered_stop_ids: tuple[str, ...]
    total_distance_m: float
    total_duration_s: float
    polyline: tuple[Coordinate, ...]
    waypoints: tuple[Coordinate, ...]
    provider: Optional[str] = None
    instructions: tuple[str, ...] = field(default=())

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_m / 1000.0

    @property
    def total_duration_min(self) -> float:
        return self.total_duration_s / 60.0
