"""Static geographic tables: gazetteer, target region and region centroids."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ...config import settings
from ...models.domain import Coordinate
from ..geospatial import BoundingBox

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def normalize_address(text: str) -> str:
    """Cache and lookup key for an address: trimmed and lower-cased."""
    return text.strip().lower()


def significant_words(text: str) -> list[str]:
    return [word for word in _WORD_RE.findall(text.lower()) if len(word) >= 3 or word.isdigit()]


@dataclass(slots=True, frozen=True)
class TargetRegion:
    name: str
    locality: str
    centroid: Coordinate
    bounds: BoundingBox
    viewbox: BoundingBox
    landmarks: tuple[tuple[str, str], ...]


@dataclass(slots=True, frozen=True)
class Country:
    name: str
    code: str
    default_centroid: Coordinate


class Gazetteer:
    """Ordered table of known locality names with their coordinates.

    Lookups return the first qualifying entry in insertion order: an exact
    match, then substring containment, then a match sharing at least
    ``min_shared_words`` significant words.
    """

    def __init__(self, entries: Iterable[tuple[str, Coordinate]], min_shared_words: int = 2) -> None:
        self._entries: dict[str, Coordinate] = {}
        for name, coordinate in entries:
            key = normalize_address(name)
            if key and key not in self._entries:
                self._entries[key] = coordinate
        self.min_shared_words = min_shared_words

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, address: str) -> Optional[tuple[str, Coordinate]]:
        """Return ``(matched_key, coordinate)`` or None."""
        query = normalize_address(address)
        if not query:
            return None

        exact = self._entries.get(query)
        if exact is not None:
            return query, exact

        for key, coordinate in self._entries.items():
            if key in query or query in key:
                logger.debug(f"Gazetteer substring match: '{query}' -> '{key}'")
                return key, coordinate

        query_words = significant_words(query)
        if len(query_words) < self.min_shared_words:
            return None
        for key, coordinate in self._entries.items():
            key_words = significant_words(key)
            shared = sum(
                1 for word in query_words if any(word in key_word or key_word in word for key_word in key_words)
            )
            if shared >= self.min_shared_words:
                logger.debug(f"Gazetteer keyword match: '{query}' -> '{key}' ({shared} words)")
                return key, coordinate
        return None


@dataclass(slots=True, frozen=True)
class GeoData:
    country: Country
    target_region: TargetRegion
    gazetteer: Gazetteer
    regions: dict[str, Coordinate]

    def region_centroid(self, region: str) -> Optional[Coordinate]:
        return self.regions.get(_region_key(region))


def _region_key(region: str) -> str:
    return re.sub(r"[\s\-]+", "_", region.strip().upper())


def _coordinate(raw: dict) -> Coordinate:
    return Coordinate(lat=float(raw["lat"]), lng=float(raw["lng"]))


def _bbox(raw: dict) -> BoundingBox:
    return BoundingBox(
        south=float(raw["south"]),
        west=float(raw["west"]),
        north=float(raw["north"]),
        east=float(raw["east"]),
    )


def _parse_landmark_overrides(values: Sequence[str]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for value in values:
        query, _, result = value.partition(":")
        query = query.strip().lower()
        if query:
            pairs.append((query, (result.strip() or query).lower()))
    return pairs


def parse_geodata(raw: dict, extra_landmarks: Sequence[str] = ()) -> GeoData:
    """Build :class:`GeoData` from the JSON document layout of ``geodata.json``."""
    try:
        country_raw = raw["country"]
        region_raw = raw["target_region"]
        country = Country(
            name=str(country_raw["name"]),
            code=str(country_raw["code"]).lower(),
            default_centroid=_coordinate(country_raw["default_centroid"]),
        )
        landmarks = [(str(q).lower(), str(r).lower()) for q, r in region_raw.get("landmarks", [])]
        landmarks.extend(_parse_landmark_overrides(extra_landmarks))
        bounds = _bbox(region_raw["bounds"])
        target_region = TargetRegion(
            name=str(region_raw["name"]),
            locality=str(region_raw.get("locality") or region_raw["name"]).lower(),
            centroid=_coordinate(region_raw["centroid"]),
            bounds=bounds,
            viewbox=_bbox(region_raw["viewbox"]) if "viewbox" in region_raw else bounds,
            landmarks=tuple(landmarks),
        )
        gazetteer = Gazetteer(
            (str(name), Coordinate(lat=float(lat), lng=float(lng))) for name, lat, lng in raw.get("gazetteer", [])
        )
        regions = {_region_key(name): _coordinate(coords) for name, coords in raw.get("regions", {}).items()}
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid geodata document: {exc}") from exc
    return GeoData(country=country, target_region=target_region, gazetteer=gazetteer, regions=regions)


@lru_cache()
def load_geodata(source: Path | None = None) -> GeoData:
    """Load and cache the geographic tables from disk."""
    path = source or settings.geodata_file
    if not path.exists():
        raise FileNotFoundError(f"Geodata file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    geodata = parse_geodata(raw, settings.landmark_keywords)
    logger.info(
        f"Loaded geodata from {path}: {len(geodata.gazetteer)} gazetteer entries, {len(geodata.regions)} regions"
    )
    return geodata
