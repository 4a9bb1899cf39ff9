"""HTTP client for the OSRM route service."""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx
from pydantic import ValidationError

from ...config import settings
from ...exceptions import InvalidInput, RoutingProviderFailure
from ...models.domain import Coordinate
from ...schemas.providers import LineGeometry, OSRMRouteResponse
from .models import DetailedRoute

logger = logging.getLogger(__name__)


def geometry_to_polyline(geometry: LineGeometry) -> tuple[Coordinate, ...]:
    """Convert GeoJSON ``[lng, lat]`` pairs into coordinates."""
    try:
        return tuple(Coordinate(lat=point[1], lng=point[0]) for point in geometry.coordinates)
    except (IndexError, InvalidInput) as exc:
        raise RoutingProviderFailure(f"Malformed route geometry: {exc}") from exc


class OSRMClient:
    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.routing_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Injected client, or a fresh one per request so threads never share a connection pool."""
        if self._client is not None:
            return self._client
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=0),
        )

    def _request(self, waypoints: Sequence[Coordinate]) -> OSRMRouteResponse:
        coordinate_str = ";".join(",".join(map(str, point.as_lng_lat())) for point in waypoints)
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    payload = OSRMRouteResponse.model_validate(response.json())
                    if payload.code != "Ok":
                        raise ValueError(f"OSRM route request failed: {payload.message or payload.code}")
                    return payload
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RoutingProviderFailure(f"OSRM service at {self.base_url} unreachable: {exc}") from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}")
                    time.sleep(wait_time)
                except (httpx.HTTPError, ValidationError, ValueError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RoutingProviderFailure(f"OSRM route request failed: {exc}") from exc
                    time.sleep(self.backoff_seconds * attempt)
        finally:
            if self._client is None:
                client.close()

    def route(self, waypoints: Sequence[Coordinate]) -> DetailedRoute:
        """Full-geometry driving route through the waypoints in order."""
        if len(waypoints) < 2:
            raise InvalidInput("At least two coordinates are required for OSRM route.")

        payload = self._request(waypoints)
        if not payload.routes:
            raise RoutingProviderFailure("OSRM returned no route.")
        route = payload.routes[0]
        polyline = geometry_to_polyline(route.geometry)
        if len(polyline) < 2:
            raise RoutingProviderFailure(f"OSRM route has {len(polyline)} geometry points.")

        instructions = tuple(
            text for leg in route.legs for step in leg.steps if (text := step.describe())
        )
        return DetailedRoute(
            polyline=polyline,
            distance_m=route.distance,
            duration_s=route.duration,
            instructions=instructions,
            provider=self.name,
        )

    def check_health(self) -> bool:
        """Probe the service with a minimal two-point route."""
        probe = [Coordinate(lat=36.8065, lng=10.1815), Coordinate(lat=36.8000, lng=10.1800)]
        try:
            self.route(probe)
            return True
        except RoutingProviderFailure as exc:
            logger.warning(f"OSRM health check failed: {exc}")
            return False
