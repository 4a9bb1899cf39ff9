"""Geospatial helper functions."""

from __future__ import annotations

import math
from dataclasses import dataclass

from shapely.geometry import Point, box

from ..models.domain import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Compute the great-circle distance in meters using the Haversine formula."""

    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def road_distance_estimate_m(a: Coordinate, b: Coordinate, road_factor: float) -> float:
    """Approximate road distance by scaling the straight-line distance."""
    return haversine_m(a, b) * road_factor


def estimate_duration_s(distance_m: float, average_speed_kmh: float) -> float:
    """Travel time in seconds for a distance driven at a flat average speed."""
    return (distance_m / 1000.0) * (3600.0 / average_speed_kmh)


def interpolate(start: Coordinate, end: Coordinate, count: int) -> list[Coordinate]:
    """Return ``count`` evenly spaced points strictly between start and end."""

    points: list[Coordinate] = []
    for i in range(1, count + 1):
        ratio = i / (count + 1)
        points.append(
            Coordinate(
                lat=start.lat + (end.lat - start.lat) * ratio,
                lng=start.lng + (end.lng - start.lng) * ratio,
            )
        )
    return points


@dataclass(slots=True, frozen=True)
class BoundingBox:
    """Axis-aligned lat/lng box, edges inclusive."""

    south: float
    west: float
    north: float
    east: float

    def contains(self, point: Coordinate) -> bool:
        # covers() keeps points on the edge, contains() would drop them
        return box(self.west, self.south, self.east, self.north).covers(Point(point.lng, point.lat))

    def as_viewbox(self) -> str:
        """Provider wire format ``west,south,east,north``."""
        return f"{self.west},{self.south},{self.east},{self.north}"
