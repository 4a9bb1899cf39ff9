"""Routing orchestration: provider chain with a straight-line fallback."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...exceptions import InvalidInput, RoutingProviderFailure
from ...models.domain import Coordinate
from ..geospatial import estimate_duration_s, haversine_m, interpolate
from .models import DetailedRoute, RouteProvider
from .ors_client import OpenRouteServiceClient
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)

STRAIGHT_LINE = "straight_line"


def build_default_providers() -> list[RouteProvider]:
    """OSRM first, then OpenRouteService; providers without configuration are skipped."""
    providers: list[RouteProvider] = []
    for factory in (OSRMClient, OpenRouteServiceClient):
        try:
            providers.append(factory())
        except ValueError as exc:
            logger.info(f"Skipping routing provider {factory.name}: {exc}")
    return providers


def straight_line_route(
    waypoints: Sequence[Coordinate],
    average_speed_kmh: float | None = None,
    interpolation_points: int | None = None,
) -> DetailedRoute:
    """Synthesize a route from straight segments between consecutive waypoints."""
    if len(waypoints) < 2:
        raise InvalidInput("At least two waypoints are required to build a route.")
    speed = average_speed_kmh if average_speed_kmh is not None else settings.average_speed_kmh
    count = interpolation_points if interpolation_points is not None else settings.fallback_interpolation_points

    polyline: list[Coordinate] = [waypoints[0]]
    total_distance = 0.0
    for previous, current in zip(waypoints, waypoints[1:]):
        polyline.extend(interpolate(previous, current, count))
        polyline.append(current)
        total_distance += haversine_m(previous, current)

    instructions = tuple("Start" if index == 0 else f"Delivery {index}" for index in range(len(waypoints)))
    return DetailedRoute(
        polyline=tuple(polyline),
        distance_m=total_distance,
        duration_s=estimate_duration_s(total_distance, speed),
        instructions=instructions,
        provider=STRAIGHT_LINE,
    )


class RoutingService:
    """Road routes through ordered waypoints.

    Each provider is tried once, in order. When all of them fail the route is
    synthesized from straight segments, so :meth:`route` only raises for
    fewer than two waypoints.
    """

    def __init__(
        self,
        providers: Sequence[RouteProvider] | None = None,
        average_speed_kmh: float | None = None,
    ) -> None:
        self.providers = list(providers) if providers is not None else build_default_providers()
        self.average_speed_kmh = average_speed_kmh if average_speed_kmh is not None else settings.average_speed_kmh

    def route(self, waypoints: Sequence[Coordinate]) -> DetailedRoute:
        if len(waypoints) < 2:
            raise InvalidInput("At least two waypoints are required to compute a route.")

        logger.info(f"Calculating detailed route for {len(waypoints)} waypoints")
        for provider in self.providers:
            try:
                route = provider.route(waypoints)
            except RoutingProviderFailure as exc:
                logger.warning(f"Routing provider '{provider.name}' failed: {exc}")
                continue
            logger.info(f"Route calculated with {provider.name}")
            return route

        logger.info("Using fallback: straight line route")
        return straight_line_route(waypoints, average_speed_kmh=self.average_speed_kmh)

    def distance_and_duration(self, start: Coordinate, end: Coordinate) -> tuple[float, float]:
        """Road distance (m) and duration (s) between two points.

        Only the primary provider is asked; on failure the straight-line
        distance and the average-speed estimate are returned directly.
        """
        if self.providers:
            primary = self.providers[0]
            try:
                route = primary.route([start, end])
                return route.distance_m, route.duration_s
            except RoutingProviderFailure as exc:
                logger.debug(f"Point-pair routing via '{primary.name}' failed, using haversine: {exc}")
        distance = haversine_m(start, end)
        return distance, estimate_duration_s(distance, self.average_speed_kmh)
