"""Payload schemas for third-party geocoding and routing responses."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Nominatim /search?format=json


class NominatimCandidate(_Payload):
    lat: float
    lon: float
    display_name: str = ""
    type: Optional[str] = None


# Photon /api (GeoJSON FeatureCollection)


class PointGeometry(_Payload):
    coordinates: List[float] = Field(..., min_length=2)


class PhotonFeature(_Payload):
    geometry: PointGeometry
    properties: dict = Field(default_factory=dict)


class PhotonResponse(_Payload):
    features: List[PhotonFeature] = Field(default_factory=list)


# Shared GeoJSON line geometry


class LineGeometry(_Payload):
    coordinates: List[List[float]]


# OSRM /route/v1 with geometries=geojson


class OSRMManeuver(_Payload):
    type: Optional[str] = None
    modifier: Optional[str] = None
    instruction: Optional[str] = None


class OSRMStep(_Payload):
    name: Optional[str] = None
    maneuver: Optional[OSRMManeuver] = None

    def describe(self) -> str:
        if self.maneuver is None:
            return ""
        if self.maneuver.instruction:
            return self.maneuver.instruction
        parts = [self.maneuver.type, self.maneuver.modifier]
        if self.name:
            parts.append(f"onto {self.name}")
        return " ".join(part for part in parts if part)


class OSRMLeg(_Payload):
    steps: List[OSRMStep] = Field(default_factory=list)


class OSRMRoute(_Payload):
    distance: float
    duration: float
    geometry: LineGeometry
    legs: List[OSRMLeg] = Field(default_factory=list)


class OSRMRouteResponse(_Payload):
    code: str
    message: Optional[str] = None
    routes: List[OSRMRoute] = Field(default_factory=list)


# OpenRouteService /v2/directions/{profile}/geojson


class ORSSummary(_Payload):
    distance: float = 0.0
    duration: float = 0.0


class ORSStep(_Payload):
    instruction: str = ""


class ORSSegment(_Payload):
    steps: List[ORSStep] = Field(default_factory=list)


class ORSProperties(_Payload):
    summary: ORSSummary = Field(default_factory=ORSSummary)
    segments: List[ORSSegment] = Field(default_factory=list)


class ORSFeature(_Payload):
    geometry: LineGeometry
    properties: ORSProperties = Field(default_factory=ORSProperties)


class ORSResponse(_Payload):
    features: List[ORSFeature] = Field(default_factory=list)
