"""Route optimization orchestration."""

from __future__ import annotations

import logging
from functools import partial
from typing import Sequence

from ...config import settings
from ...exceptions import InvalidInput, StopUnresolvable
from ...models.domain import Coordinate, RoutePlan, Stop
from ..geospatial import road_distance_estimate_m
from ..routing import DetailedRoute, RoutingService
from ..throttle import TokenBucket
from .heuristics import nearest_neighbor, two_opt
from .resolver import StopResolver

logger = logging.getLogger(__name__)


class RouteOptimizer:
    """Order a driver's stops and fetch one road route for the chosen order.

    Stops are positioned first (sequentially, throttled). The order is built
    by a nearest-neighbor pass that measures road distance for a small window
    of candidates and estimated distance for the rest, then improved by a
    capped 2-opt search on estimated distance. Only the final order is sent
    for a full-resolution route.
    """

    def __init__(
        self,
        routing: RoutingService | None = None,
        resolver: StopResolver | None = None,
        geocode_throttle: TokenBucket | None = None,
        probe_throttle: TokenBucket | None = None,
        road_factor: float | None = None,
        candidate_window: int | None = None,
        max_passes: int | None = None,
    ) -> None:
        self.routing = routing or RoutingService()
        self.resolver = resolver or StopResolver()
        self.geocode_throttle = geocode_throttle or TokenBucket.from_interval(settings.geocode_interval_seconds)
        self.probe_throttle = probe_throttle or TokenBucket.from_interval(settings.road_probe_interval_seconds)
        self.road_factor = road_factor if road_factor is not None else settings.road_factor
        self.candidate_window = candidate_window if candidate_window is not None else settings.road_candidate_window
        self.max_passes = max_passes if max_passes is not None else settings.two_opt_max_passes

    def optimize(self, start: Coordinate, stops: Sequence[Stop]) -> RoutePlan:
        _validate_stops(stops)
        logger.info(f"Starting route optimization for {len(stops)} stops from ({start.lat}, {start.lng})")

        if not stops:
            return RoutePlan(
                ordered_stop_ids=(),
                total_distance_m=0.0,
                total_duration_s=0.0,
                polyline=(start,),
                waypoints=(start,),
            )

        if len(stops) == 1:
            stop = stops[0]
            waypoints = (start, self.resolver.resolve(stop))
            return self._build_plan((stop.id,), waypoints, self.routing.route(waypoints))

        coordinates = self.resolve_coordinates(stops)
        stop_ids = [stop.id for stop in stops]

        logger.info("Running nearest neighbor construction")
        estimate = partial(road_distance_estimate_m, road_factor=self.road_factor)
        constructed = nearest_neighbor(
            start,
            stop_ids,
            coordinates,
            road_distance=self._road_distance,
            estimate_distance=estimate,
            window=self.candidate_window,
        )

        max_passes = min(self.max_passes, 2 * len(stops))
        logger.info(f"Running 2-opt improvement (max {max_passes} passes)")
        improved, estimated_m = two_opt(start, constructed, coordinates, estimate, max_passes=max_passes)
        logger.info(f"Estimated route distance after 2-opt: {estimated_m / 1000:.2f} km")

        waypoints = (start, *(coordinates[stop_id] for stop_id in improved))
        return self._build_plan(tuple(improved), waypoints, self.routing.route(waypoints))

    def resolve_coordinates(self, stops: Sequence[Stop]) -> dict[str, Coordinate]:
        """Position every stop, one call at a time."""
        coordinates: dict[str, Coordinate] = {}
        for stop in stops:
            if stop.known_coordinate is None:
                self.geocode_throttle.acquire()
            coordinates[stop.id] = self.resolver.resolve(stop)
            logger.debug(f"Stop {stop.id} positioned at {coordinates[stop.id]}")
        return coordinates

    def _road_distance(self, a: Coordinate, b: Coordinate) -> float:
        self.probe_throttle.acquire()
        distance, _ = self.routing.distance_and_duration(a, b)
        return distance

    def _build_plan(
        self, ordered_ids: tuple[str, ...], waypoints: tuple[Coordinate, ...], route: DetailedRoute
    ) -> RoutePlan:
        if len(route.polyline) < 2:
            raise InvalidInput(f"Optimization failed: route has {len(route.polyline)} points.")

        logger.info(
            f"Optimization completed: {route.distance_m / 1000:.2f} km, "
            f"{route.duration_s / 60:.0f} min, {len(route.polyline)} route points via {route.provider}"
        )
        return RoutePlan(
            ordered_stop_ids=ordered_ids,
            total_distance_m=route.distance_m,
            total_duration_s=route.duration_s,
            polyline=route.polyline,
            waypoints=waypoints,
            provider=route.provider,
            instructions=route.instructions,
        )


def _validate_stops(stops: Sequence[Stop]) -> None:
    """Reject duplicate ids and unpositionable stops before any provider call."""
    seen: set[str] = set()
    for stop in stops:
        if stop.id in seen:
            raise InvalidInput(f"Duplicate stop id '{stop.id}'.")
        if not stop.has_position_source():
            raise StopUnresolvable(stop.id)
        seen.add(stop.id)
