"""Stop positioning at the boundary with the order/course layer."""

from __future__ import annotations

import logging

from ...exceptions import GeocodeNotFound, StopUnresolvable
from ...models.domain import Coordinate, Stop
from ..geocoding import Geocoder

logger = logging.getLogger(__name__)


class StopResolver:
    """Position a stop: known coordinate, geocoded address, region centroid, default centroid."""

    def __init__(self, geocoder: Geocoder | None = None) -> None:
        self.geocoder = geocoder or Geocoder()

    def region_centroid(self, region: str) -> Coordinate:
        geodata = self.geocoder.geodata
        centroid = geodata.region_centroid(region)
        if centroid is None:
            logger.warning(f"Unknown region '{region}', using default {geodata.country.name} centroid")
            return geodata.country.default_centroid
        return centroid

    def resolve(self, stop: Stop) -> Coordinate:
        if stop.known_coordinate is not None:
            return stop.known_coordinate
        if not stop.has_position_source():
            raise StopUnresolvable(stop.id)

        address = (stop.address_text or "").strip()
        region = (stop.fallback_region or "").strip()
        if address:
            try:
                return self.geocoder.resolve(address)
            except GeocodeNotFound:
                if region:
                    logger.info(f"Stop {stop.id}: address not found, using region {region}")
                    return self.region_centroid(region)
                return self.geocoder.fallback_centroid(address)

        logger.info(f"Stop {stop.id}: no address, using region {region}")
        return self.region_centroid(region)
