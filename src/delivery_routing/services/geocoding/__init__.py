"""Geocoding services."""

from .cache import GeocodeCache
from .gazetteer import Gazetteer, GeoData, load_geodata, normalize_address
from .providers import GeocodingProvider, NominatimProvider, PhotonProvider
from .service import Geocoder

__all__ = [
    "Geocoder",
    "GeocodeCache",
    "Gazetteer",
    "GeoData",
    "GeocodingProvider",
    "NominatimProvider",
    "PhotonProvider",
    "load_geodata",
    "normalize_address",
]
