"""Serializers for route plans."""

from __future__ import annotations

from typing import Sequence

from ...exceptions import InvalidInput
from ...models.domain import Coordinate, RoutePlan


def _points(coordinates: Sequence[Coordinate]) -> list[dict[str, float]]:
    return [{"lat": point.lat, "lng": point.lng} for point in coordinates]


def plan_to_course_update(plan: RoutePlan) -> dict:
    """Fields a persisted course record takes from an optimization run.

    Distance is in kilometers and duration in minutes. ``pointDepart`` is the
    start point; ``pointArrivee`` lists the stop waypoints as ``"lat,lng"``
    strings, start excluded.
    """
    if plan.ordered_stop_ids and len(plan.polyline) < 2:
        raise InvalidInput("Invalid detailed route data: fewer than two points.")
    return {
        "orderIds": list(plan.ordered_stop_ids),
        "distance": plan.total_distance_km,
        "duree": plan.total_duration_min,
        "pointDepart": {"lat": plan.waypoints[0].lat, "lng": plan.waypoints[0].lng},
        "pointArrivee": [f"{point.lat},{point.lng}" for point in plan.waypoints[1:]],
        "route": _points(plan.waypoints),
        "detailedRoute": _points(plan.polyline),
    }


def plan_to_json(plan: RoutePlan) -> dict:
    return {
        "ordered_stop_ids": list(plan.ordered_stop_ids),
        "total_distance_m": plan.total_distance_m,
        "total_duration_s": plan.total_duration_s,
        "provider": plan.provider,
        "waypoints": _points(plan.waypoints),
        "polyline": _points(plan.polyline),
        "instructions": list(plan.instructions),
    }
