"""Error types raised by the geocoding, routing and optimization services."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(RoutingError, ValueError):
    """Request cannot be routed: too few waypoints, bad coordinates or a degenerate route."""


class StopUnresolvable(RoutingError, ValueError):
    """A stop carries no coordinate, no address and no region."""

    def __init__(self, stop_id: str) -> None:
        super().__init__(f"Stop '{stop_id}' has no coordinate, address or region to resolve.")
        self.stop_id = stop_id


class GeocodeNotFound(RoutingError, LookupError):
    """Address did not resolve through any geocoding tier."""

    def __init__(self, address: str) -> None:
        super().__init__(f"No geocoding result for '{address}'.")
        self.address = address


class GeocodeProviderFailure(RoutingError):
    """Transport or payload error from a single geocoding provider."""


class RoutingProviderFailure(RoutingError):
    """Transport or payload error from a single routing provider."""
