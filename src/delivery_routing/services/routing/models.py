"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ...models.domain import Coordinate


@dataclass(slots=True, frozen=True)
class DetailedRoute:
    polyline: tuple[Coordinate, ...]
    distance_m: float
    duration_s: float
    instructions: tuple[str, ...] = field(default=())
    provider: str = ""


class RouteProvider(Protocol):
    name: str

    def route(self, waypoints: Sequence[Coordinate]) -> DetailedRoute:
        """Road route through the waypoints in the given order.

        Raises RoutingProviderFailure on transport or payload errors.
        """
        ...
