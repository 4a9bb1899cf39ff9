"""Layered address geocoding: cache, local gazetteer, then external providers."""

from __future__ import annotations

import logging
import re
import threading
from typing import Optional, Sequence

from ...config import settings
from ...exceptions import GeocodeNotFound, GeocodeProviderFailure
from ...models.domain import Coordinate
from .cache import GeocodeCache
from .gazetteer import GeoData, load_geodata, normalize_address
from .providers import GeocodingProvider, NominatimProvider, PhotonProvider

logger = logging.getLogger(__name__)

_shared_cache: Optional[GeocodeCache] = None
_shared_cache_lock = threading.Lock()


def get_shared_cache() -> GeocodeCache:
    """Cache shared by every geocoder built with the defaults."""
    global _shared_cache
    if _shared_cache is None:
        with _shared_cache_lock:
            if _shared_cache is None:
                _shared_cache = GeocodeCache(max_entries=settings.geocode_cache_max_entries)
    return _shared_cache


def build_default_providers(geodata: GeoData) -> list[GeocodingProvider]:
    providers: list[GeocodingProvider] = []
    if settings.nominatim_base_url:
        providers.append(NominatimProvider(geodata.target_region, geodata.country))
    if settings.photon_base_url:
        providers.append(PhotonProvider(geodata.target_region, geodata.country))
    if not providers:
        logger.warning("No external geocoding provider configured; only the gazetteer will be used.")
    return providers


class Geocoder:
    """Resolve free-text addresses to coordinates.

    Tiers are tried in order and the first success wins: cache, gazetteer
    (exact, substring, keyword overlap), then each external provider. Any
    successful resolution is cached under the normalized input text.
    """

    def __init__(
        self,
        geodata: GeoData | None = None,
        providers: Sequence[GeocodingProvider] | None = None,
        cache: GeocodeCache | None = None,
    ) -> None:
        self.geodata = geodata or load_geodata()
        self.providers = list(providers) if providers is not None else build_default_providers(self.geodata)
        self.cache = cache if cache is not None else get_shared_cache()

    def resolve(self, address_text: str) -> Coordinate:
        """Resolve an address or raise :class:`GeocodeNotFound`."""
        key = normalize_address(address_text)
        if not key:
            raise GeocodeNotFound(address_text)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Using cached coordinates for '{address_text}'")
            return cached

        local = self.geodata.gazetteer.lookup(key)
        if local is not None:
            matched_key, coordinate = local
            logger.info(f"Gazetteer resolved '{address_text}' via '{matched_key}'")
            self.cache.put(key, coordinate)
            return coordinate

        cleaned = clean_address(address_text)
        for provider in self.providers:
            try:
                coordinate = provider.search(cleaned)
            except GeocodeProviderFailure as exc:
                logger.warning(f"Geocoding provider '{provider.name}' failed: {exc}")
                continue
            if coordinate is not None:
                self.cache.put(key, coordinate)
                return coordinate

        logger.info(f"No geocoding result found for '{address_text}'")
        raise GeocodeNotFound(address_text)

    def resolve_with_fallback(self, address_text: str) -> Coordinate:
        """Resolve an address, falling back to the target city or country centroid. Never raises."""
        try:
            return self.resolve(address_text)
        except GeocodeNotFound:
            pass
        return self.fallback_centroid(address_text)

    def fallback_centroid(self, address_text: str) -> Coordinate:
        region = self.geodata.target_region
        if region.locality in address_text.lower():
            logger.info(f"Using {region.name} centroid for '{address_text}'")
            return region.centroid
        logger.info(f"Using default {self.geodata.country.name} centroid for '{address_text}'")
        return self.geodata.country.default_centroid


def clean_address(address: str) -> str:
    """Collapse whitespace and stray commas, expand the 'bd' abbreviation."""
    text = re.sub(r"\s+", " ", address.strip())
    text = re.sub(r",\s*,", ",", text)
    text = text.strip(",").strip()
    return re.sub(r"\bbd\b", "boulevard", text, flags=re.IGNORECASE)
