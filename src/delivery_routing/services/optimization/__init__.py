"""Route optimization services."""

from .heuristics import nearest_neighbor, path_distance, two_opt
from .resolver import StopResolver
from .service import RouteOptimizer

__all__ = ["RouteOptimizer", "StopResolver", "nearest_neighbor", "path_distance", "two_opt"]
