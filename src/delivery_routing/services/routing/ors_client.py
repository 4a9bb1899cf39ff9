"""HTTP client for the OpenRouteService directions API."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx
from pydantic import ValidationError

from ...config import settings
from ...exceptions import InvalidInput, RoutingProviderFailure
from ...models.domain import Coordinate
from ...schemas.providers import ORSResponse
from .models import DetailedRoute
from .osrm_client import geometry_to_polyline

logger = logging.getLogger(__name__)


class OpenRouteServiceClient:
    name = "openrouteservice"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key or settings.openrouteservice_api_key
        if not self.api_key:
            raise ValueError("OpenRouteService API key is not configured.")
        self.base_url = base_url or settings.openrouteservice_base_url
        if not self.base_url:
            raise ValueError("OpenRouteService base URL is not configured.")
        self.profile = profile or settings.openrouteservice_profile
        self.timeout = timeout if timeout is not None else settings.routing_timeout_seconds
        self._client = client

    def route(self, waypoints: Sequence[Coordinate]) -> DetailedRoute:
        if len(waypoints) < 2:
            raise InvalidInput("At least two coordinates are required for OpenRouteService route.")

        body = {
            "coordinates": [list(point.as_lng_lat()) for point in waypoints],
            "instructions": True,
        }
        headers = {"Authorization": self.api_key, "Content-Type": "application/json"}
        url = f"{self.base_url}/v2/directions/{self.profile}/geojson"

        client = self._client or httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))
        try:
            response = client.post(url, json=body, headers=headers)
            response.raise_for_status()
            payload = ORSResponse.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            raise RoutingProviderFailure(f"OpenRouteService request failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

        if not payload.features:
            raise RoutingProviderFailure("OpenRouteService returned no route.")
        feature = payload.features[0]
        polyline = geometry_to_polyline(feature.geometry)
        if len(polyline) < 2:
            raise RoutingProviderFailure(f"OpenRouteService route has {len(polyline)} geometry points.")

        instructions = tuple(
            step.instruction for segment in feature.properties.segments for step in segment.steps if step.instruction
        )
        return DetailedRoute(
            polyline=polyline,
            distance_m=feature.properties.summary.distance,
            duration_s=feature.properties.summary.duration,
            instructions=instructions,
            provider=self.name,
        )
