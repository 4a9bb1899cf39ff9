"""Multi-stop delivery route optimization."""

from .models.domain import Coordinate, RoutePlan, Stop
from .services.optimization import RouteOptimizer

__all__ = ["Coordinate", "RoutePlan", "RouteOptimizer", "Stop"]
