"""HTTP geocoding providers (Nominatim and Photon) scoped to the target region."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from ...config import settings
from ...exceptions import GeocodeProviderFailure, InvalidInput
from ...models.domain import Coordinate
from ...schemas.providers import NominatimCandidate, PhotonResponse
from ..geospatial import haversine_m
from ..throttle import TokenBucket
from .gazetteer import Country, TargetRegion

logger = logging.getLogger(__name__)

TYPE_SCORES: dict[str, int] = {
    "house": 15,
    "building": 15,
    "road": 12,
    "street": 12,
    "neighbourhood": 8,
    "suburb": 8,
    "city": 5,
    "town": 5,
}
LANDMARK_BONUS = 20
NEAR_CENTROID_M = 5000.0
NEAR_CENTROID_BONUS = 10
VERY_NEAR_CENTROID_M = 2000.0
VERY_NEAR_CENTROID_BONUS = 5

_candidate_list = TypeAdapter(list[NominatimCandidate])


class GeocodingProvider(Protocol):
    name: str

    def search(self, address: str) -> Optional[Coordinate]:
        """Return the best in-region coordinate, None when nothing qualifies.

        Raises GeocodeProviderFailure on transport or payload errors.
        """
        ...


def _candidate_coordinate(candidate: NominatimCandidate) -> Optional[Coordinate]:
    try:
        return Coordinate(lat=candidate.lat, lng=candidate.lon)
    except InvalidInput:
        return None


def score_candidate(candidate: NominatimCandidate, address: str, region: TargetRegion) -> int:
    """Rank a search candidate by place type, landmark keywords and distance to the region centroid."""
    score = TYPE_SCORES.get((candidate.type or "").lower(), 0)

    address_lower = address.lower()
    display_name = candidate.display_name.lower()
    for query_keyword, result_keyword in region.landmarks:
        if query_keyword in address_lower and result_keyword in display_name:
            score += LANDMARK_BONUS

    coordinate = _candidate_coordinate(candidate)
    if coordinate is not None:
        distance = haversine_m(coordinate, region.centroid)
        if distance < NEAR_CENTROID_M:
            score += NEAR_CENTROID_BONUS
        if distance < VERY_NEAR_CENTROID_M:
            score += VERY_NEAR_CENTROID_BONUS
    return score


def select_best_candidate(
    candidates: Sequence[NominatimCandidate], address: str, region: TargetRegion
) -> Optional[NominatimCandidate]:
    """Keep in-region candidates naming the locality and return the highest scored one.

    Ties keep the provider's ordering.
    """
    best: Optional[NominatimCandidate] = None
    best_score = -1
    for candidate in candidates:
        if region.locality not in candidate.display_name.lower():
            continue
        coordinate = _candidate_coordinate(candidate)
        if coordinate is None or not region.bounds.contains(coordinate):
            logger.debug(f"Rejecting out-of-region candidate '{candidate.display_name}'")
            continue
        score = score_candidate(candidate, address, region)
        logger.debug(f"Candidate '{candidate.display_name}' scored {score}")
        if score > best_score:
            best, best_score = candidate, score
    return best


def _client(timeout: float) -> httpx.Client:
    return httpx.Client(timeout=httpx.Timeout(timeout, connect=10.0))


class NominatimProvider:
    """Bounded multi-variant search against a Nominatim instance."""

    name = "nominatim"

    def __init__(
        self,
        region: TargetRegion,
        country: Country,
        base_url: str | None = None,
        timeout: float | None = None,
        limit: int | None = None,
        user_agent: str | None = None,
        throttle: TokenBucket | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url or settings.nominatim_base_url
        if not self.base_url:
            raise ValueError("Nominatim base URL is not configured.")
        self.region = region
        self.country = country
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout_seconds
        self.limit = limit if limit is not None else settings.nominatim_result_limit
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.throttle = throttle or TokenBucket.from_interval(settings.nominatim_variant_interval_seconds)
        self._client = client

    def query_variants(self, address: str) -> list[str]:
        city, country = self.region.name, self.country.name
        return [f"{address}, {city}, {country}", f"{address}, {city}", f"{address}, {country}", address]

    def _fetch(self, client: httpx.Client, query: str) -> list[NominatimCandidate]:
        params = {
            "q": query,
            "format": "json",
            "limit": self.limit,
            "countrycodes": self.country.code,
            "addressdetails": 1,
            "bounded": 1,
            "viewbox": self.region.viewbox.as_viewbox(),
        }
        try:
            response = client.get(f"{self.base_url}/search", params=params, headers={"User-Agent": self.user_agent})
            response.raise_for_status()
            return _candidate_list.validate_python(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            raise GeocodeProviderFailure(f"Nominatim search failed for '{query}': {exc}") from exc

    def search(self, address: str) -> Optional[Coordinate]:
        client = self._client or _client(self.timeout)
        try:
            for variant in self.query_variants(address):
                self.throttle.acquire()
                candidates = self._fetch(client, variant)
                best = select_best_candidate(candidates, address, self.region)
                if best is not None:
                    logger.info(f"Nominatim geocoded '{address}' via '{variant}' -> {best.display_name}")
                    return Coordinate(lat=best.lat, lng=best.lon)
            return None
        finally:
            if self._client is None:
                client.close()


class PhotonProvider:
    """Single bbox-scoped query against a Photon instance."""

    name = "photon"

    def __init__(
        self,
        region: TargetRegion,
        country: Country,
        base_url: str | None = None,
        timeout: float | None = None,
        limit: int | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url or settings.photon_base_url
        if not self.base_url:
            raise ValueError("Photon base URL is not configured.")
        self.region = region
        self.country = country
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout_seconds
        self.limit = limit if limit is not None else settings.photon_result_limit
        self._client = client

    def search(self, address: str) -> Optional[Coordinate]:
        params = {
            "q": f"{address}, {self.region.name}, {self.country.name}",
            "limit": self.limit,
            "bbox": self.region.viewbox.as_viewbox(),
        }
        client = self._client or _client(self.timeout)
        try:
            response = client.get(f"{self.base_url}/api", params=params)
            response.raise_for_status()
            payload = PhotonResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            raise GeocodeProviderFailure(f"Photon search failed for '{address}': {exc}") from exc
        finally:
            if self._client is None:
                client.close()

        for feature in payload.features:
            lng, lat = feature.geometry.coordinates[0], feature.geometry.coordinates[1]
            try:
                coordinate = Coordinate(lat=lat, lng=lng)
            except InvalidInput:
                continue
            if self.region.bounds.contains(coordinate):
                logger.info(f"Photon geocoded '{address}' -> {coordinate}")
                return coordinate
        return None
