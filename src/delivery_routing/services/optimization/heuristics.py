"""Tour construction and improvement heuristics.

Tours are open paths that start at a fixed point and visit every stop once,
without returning. Stops are referred to by id; their positions come from a
coordinate map so the functions stay independent of how stops were resolved.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Mapping, Sequence

from ...models.domain import Coordinate

logger = logging.getLogger(__name__)

DistanceFn = Callable[[Coordinate, Coordinate], float]


def path_distance(
    start: Coordinate,
    order: Sequence[str],
    coordinates: Mapping[str, Coordinate],
    distance: DistanceFn,
) -> float:
    total = 0.0
    current = start
    for stop_id in order:
        target = coordinates[stop_id]
        total += distance(current, target)
        current = target
    return total


def nearest_neighbor(
    start: Coordinate,
    stop_ids: Sequence[str],
    coordinates: Mapping[str, Coordinate],
    road_distance: DistanceFn,
    estimate_distance: DistanceFn,
    window: int = 3,
) -> list[str]:
    """Greedy tour from ``start``.

    At each step the first ``window`` unvisited stops (in their current list
    order) are measured with ``road_distance`` and the rest with
    ``estimate_distance``; the overall closest stop is visited next. Ties go
    to the earlier stop in the list.
    """
    unvisited = list(stop_ids)
    route: list[str] = []
    current = start

    while unvisited:
        closest_index = 0
        min_distance = math.inf
        for index, stop_id in enumerate(unvisited):
            target = coordinates[stop_id]
            measure = road_distance if index < window else estimate_distance
            candidate = measure(current, target)
            if candidate < min_distance:
                min_distance = candidate
                closest_index = index

        closest = unvisited.pop(closest_index)
        route.append(closest)
        current = coordinates[closest]
        logger.debug(f"Added stop {closest} to route (distance: {min_distance:.0f}m)")

    return route


def two_opt(
    start: Coordinate,
    order: Sequence[str],
    coordinates: Mapping[str, Coordinate],
    distance: DistanceFn,
    max_passes: int = 10,
) -> tuple[list[str], float]:
    """First-improvement 2-opt on the open path ``[start, *order]``.

    Each pass scans reversals of ``order[i+1..j]`` (two or more stops) and
    accepts the first one that strictly shortens the path, then starts the
    next pass. Stops after ``max_passes`` passes or a pass without
    improvement. The start point and the first stop never move, so orders of
    two stops or fewer come back unchanged.

    Returns the improved order and its distance.
    """
    best_route = list(order)
    best_distance = path_distance(start, best_route, coordinates, distance)
    count = len(best_route)
    if count <= 2:
        return best_route, best_distance

    passes = 0
    for _ in range(max_passes):
        improved = False
        for i in range(count - 1):
            for j in range(i + 2, count):
                candidate = best_route[: i + 1] + best_route[i + 1 : j + 1][::-1] + best_route[j + 1 :]
                candidate_distance = path_distance(start, candidate, coordinates, distance)
                if candidate_distance < best_distance:
                    logger.debug(f"2-opt improvement found: -{(best_distance - candidate_distance) / 1000:.2f} km")
                    best_route, best_distance = candidate, candidate_distance
                    improved = True
                    break
            if improved:
                break
        if not improved:
            break
        passes += 1

    logger.debug(f"2-opt completed after {passes} improving passes ({best_distance / 1000:.2f} km)")
    return best_route, best_distance
