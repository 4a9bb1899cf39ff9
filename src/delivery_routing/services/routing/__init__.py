"""Road routing services."""

from .models import DetailedRoute, RouteProvider
from .ors_client import OpenRouteServiceClient
from .osrm_client import OSRMClient
from .service import RoutingService, straight_line_route

__all__ = [
    "DetailedRoute",
    "RouteProvider",
    "OSRMClient",
    "OpenRouteServiceClient",
    "RoutingService",
    "straight_line_route",
]
