from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

FuelType = Literal["unleaded", "diesel", "lpg", "ev"]
StationCategory = Literal["fuel", "ev_charging"]
Side = Literal["left", "right", "on_route"]
WarningType = Literal["no_fuel_on_route", "gap", "long_stretch", "last_chance"]
Severity = Literal["info", "warn", "critical"]
FatigueWarningLevel = Literal["none", "suggested", "recommended", "urgent"]


@dataclass(slots=True, frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(slots=True, frozen=True)
class SegmentProjection:
    t: float
    distance_m: float


@dataclass(slots=True, frozen=True)
class SnapResult:
    km: float
    distance_m: float
    side: Side
    segment_index: int
    t: float


@dataclass(slots=True, frozen=True)
class VehicleFuelProfile:
    fuel_type: FuelType
    tank_range_km: float
    reserve_warn_km: float
    reserve_critical_km: float


@dataclass(slots=True, frozen=True)
class CandidatePoint:
    id: str
    name: str
    lat: float
    lng: float
    category: str
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class FuelStation:
    place_id: str
    name: str
    lat: float
    lng: float
    category: StationCategory
    km_along_route: float
    snap_distance_m: float
    side: Side
    brand: str | None = None
    hours: str | None = None
    has_diesel: bool | None = None
    has_unleaded: bool | None = None


@dataclass(slots=True, frozen=True)
class FuelLeg:
    idx: int
    from_station: FuelStation | None
    to_station: FuelStation | None
    distance_km: float
    gap_exceeds_range: bool
    gap_exceeds_warn: bool


@dataclass(slots=True, frozen=True)
class FuelWarning:
    type: WarningType
    severity: Severity
    message: str
    at_km: float
    station: FuelStation | None = None
    gap_km: float | None = None


@dataclass(slots=True, frozen=True)
class FuelAnalysis:
    profile: VehicleFuelProfile
    stations: tuple[FuelStation, ...]
    legs: tuple[FuelLeg, ...]
    warnings: tuple[FuelWarning, ...]
    max_gap_km: float
    total_fuel_stops: int
    has_critical_gaps: bool
    computed_at: str
    route_key: str


@dataclass(slots=True, frozen=True)
class FuelTrackingState:
    last_passed_station: FuelStation | None
    km_since_last_fuel: float
    km_to_next_fuel: float | None
    fuel_pressure: float
    next_station: FuelStation | None
    is_warn: bool
    is_critical: bool
    active_warning: FuelWarning | None


@dataclass(slots=True, frozen=True)
class FatigueState:
    trip_started_at: float | None = None
    total_drive_time_s: float = 0.0
    total_rest_time_s: float = 0.0
    last_rest_at: float | None = None
    time_since_last_rest_s: float = 0.0
    is_resting: bool = False
    current_rest_duration_s: float = 0.0
    warning_level: FatigueWarningLevel = "none"
