from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from trip_safety.services.types import (
    CandidatePoint,
    Coordinate,
    FatigueState,
    VehicleFuelProfile,
)


class VehicleFuelProfileIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fuel_type: Literal["unleaded", "diesel", "lpg", "ev"] = "unleaded"
    tank_range_km: float = Field(gt=0.0, le=5000.0)
    reserve_warn_km: float = Field(gt=0.0, le=5000.0)
    reserve_critical_km: float = Field(gt=0.0, le=5000.0)

    @model_validator(mode="after")
    def check_reserve_ordering(self) -> VehicleFuelProfileIn:
        if not self.reserve_critical_km < self.reserve_warn_km < self.tank_range_km:
            raise ValueError("reserve_critical_km < reserve_warn_km < tank_range_km must hold")
        return self

    def to_profile(self) -> VehicleFuelProfile:
        return VehicleFuelProfile(
            fuel_type=self.fuel_type,
            tank_range_km=self.tank_range_km,
            reserve_warn_km=self.reserve_warn_km,
            reserve_critical_km=self.reserve_critical_km,
        )


class PositionIn(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class CandidatePointIn(BaseModel):
    id: str = Field(min_length=1, max_length=200)
    name: str = ""
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    category: str
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_candidate(self) -> CandidatePoint:
        return CandidatePoint(
            id=self.id,
            name=self.name,
            lat=self.lat,
            lng=self.lng,
            category=self.category,
            extra=dict(self.extra),
        )


class FuelAnalysisRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    route_geometry: str = Field(min_length=1)
    route_key: str = Field(default="", max_length=300)
    places: list[CandidatePointIn] = Field(default_factory=list)
    profile: VehicleFuelProfileIn | None = None


class FuelTrackingRequest(FuelAnalysisRequest):
    current_km: float | None = Field(default=None, ge=0.0)
    position: PositionIn | None = None

    @model_validator(mode="after")
    def check_single_location(self) -> FuelTrackingRequest:
        if (self.current_km is None) == (self.position is None):
            raise ValueError("Exactly one of current_km or position is required")
        return self


class FatigueStateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    trip_started_at: float | None = None
    total_drive_time_s: float = Field(default=0.0, ge=0.0)
    total_rest_time_s: float = Field(default=0.0, ge=0.0)
    last_rest_at: float | None = None
    time_since_last_rest_s: float = Field(default=0.0, ge=0.0)
    is_resting: bool = False
    current_rest_duration_s: float = Field(default=0.0, ge=0.0)
    warning_level: Literal["none", "suggested", "recommended", "urgent"] = "none"

    def to_state(self) -> FatigueState:
        return FatigueState(**self.model_dump())


class FatigueUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    state: FatigueStateIn | None = None
    speed_mps: float | None = Field(default=None, ge=0.0)
    dt_s: float
    now: float | None = None
