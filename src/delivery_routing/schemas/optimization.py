"""Optimization request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.domain import Coordinate, RoutePlan, Stop


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinateModel":
        return cls(lat=coordinate.lat, lng=coordinate.lng)


class StopModel(BaseModel):
    id: str = Field(..., min_length=1)
    address: Optional[str] = Field(default=None, description="Free-form delivery address to geocode.")
    coordinate: Optional[CoordinateModel] = None
    region: Optional[str] = Field(default=None, description="Region name used when the address cannot be resolved.")

    @field_validator("id", "address", "region", mode="before")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @model_validator(mode="after")
    def _has_position_source(self) -> "StopModel":
        if self.coordinate is None and not self.address and not self.region:
            raise ValueError(f"Stop '{self.id}' needs a coordinate, an address or a region.")
        return self

    def to_domain(self) -> Stop:
        return Stop(
            id=self.id,
            address_text=self.address,
            known_coordinate=self.coordinate.to_domain() if self.coordinate else None,
            fallback_region=self.region,
        )


class OptimizationRequest(BaseModel):
    start: CoordinateModel
    stops: List[StopModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> "OptimizationRequest":
        ids = [stop.id for stop in self.stops]
        duplicates = sorted({stop_id for stop_id in ids if ids.count(stop_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate stop ids: {', '.join(duplicates)}")
        return self

    def to_domain(self) -> tuple[Coordinate, list[Stop]]:
        return self.start.to_domain(), [stop.to_domain() for stop in self.stops]


class RoutePlanModel(BaseModel):
    ordered_stop_ids: List[str]
    total_distance_m: float
    total_duration_s: float
    polyline: List[CoordinateModel]
    waypoints: List[CoordinateModel]
    provider: Optional[str] = None

    @classmethod
    def from_plan(cls, plan: RoutePlan) -> "RoutePlanModel":
        return cls(
            ordered_stop_ids=list(plan.ordered_stop_ids),
            total_distance_m=plan.total_distance_m,
            total_duration_s=plan.total_duration_s,
            polyline=[CoordinateModel.from_domain(point) for point in plan.polyline],
            waypoints=[CoordinateModel.from_domain(point) for point in plan.waypoints],
            provider=plan.provider,
        )
