from __future__ import annotations

from collections.abc import Sequence

from trip_safety.services.fuel_analysis import severity_rank
from trip_safety.services.projection import RouteGeometry
from trip_safety.services.types import (
    Coordinate,
    FuelAnalysis,
    FuelStation,
    FuelTrackingState,
    FuelWarning,
    VehicleFuelProfile,
)

ACTIVE_WARNING_BEHIND_KM = 50.0
ACTIVE_WARNING_AHEAD_KM = 5.0

WARN_PRESSURE = 0.3
CRITICAL_PRESSURE = 0.7


def compute_fuel_tracking(
    analysis: FuelAnalysis,
    current_km: float,
    profile: VehicleFuelProfile,
) -> FuelTrackingState:
    """Live fuel state for a position ``current_km`` along the analysed route."""
    if not analysis.stations:
        no_fuel = next(
            (warning for warning in analysis.warnings if warning.type == "no_fuel_on_route"),
            None,
        )
        return FuelTrackingState(
            last_passed_station=None,
            km_since_last_fuel=current_km,
            km_to_next_fuel=None,
            fuel_pressure=1.0 if current_km > profile.reserve_warn_km else 0.5,
            next_station=None,
            is_warn=True,
            is_critical=current_km > profile.reserve_critical_km,
            active_warning=no_fuel,
        )

    last_passed: FuelStation | None = None
    next_station: FuelStation | None = None
    for station in analysis.stations:
        if station.km_along_route <= current_km:
            last_passed = station
        else:
            next_station = station
            break

    km_since_last = current_km - last_passed.km_along_route if last_passed else current_km
    km_to_next = next_station.km_along_route - current_km if next_station else None

    pressure = compute_pressure(km_since_last, km_to_next, profile)
    is_warn = pressure >= WARN_PRESSURE or (
        km_to_next is not None and km_to_next > profile.reserve_warn_km
    )
    is_critical = pressure >= CRITICAL_PRESSURE or km_since_last > (
        profile.tank_range_km - profile.reserve_critical_km
    )

    return FuelTrackingState(
        last_passed_station=last_passed,
        km_since_last_fuel=km_since_last,
        km_to_next_fuel=km_to_next,
        fuel_pressure=pressure,
        next_station=next_station,
        is_warn=is_warn,
        is_critical=is_critical,
        active_warning=select_active_warning(analysis.warnings, current_km),
    )


def track_position(
    analysis: FuelAnalysis,
    route: RouteGeometry,
    position: Coordinate,
    profile: VehicleFuelProfile,
) -> FuelTrackingState:
    current_km = route.snap(position).km if route.is_usable else 0.0
    return compute_fuel_tracking(analysis, current_km, profile)


def compute_pressure(
    km_since_last: float,
    km_to_next: float | None,
    profile: VehicleFuelProfile,
) -> float:
    """Refuelling urgency in [0, 1].

    0 is a freshly filled tank; 1 means the next station is out of reach on
    the current tank.
    """
    range_km = profile.tank_range_km
    if range_km <= 0:
        return 1.0

    if km_to_next is None:
        return _unit(km_since_last / range_km)

    if km_since_last + km_to_next <= 0:
        return 0.0
    if km_since_last + km_to_next > range_km:
        return 1.0

    margin_fraction = (range_km - km_since_last - km_to_next) / range_km
    critical_fraction = profile.reserve_critical_km / range_km
    warn_fraction = profile.reserve_warn_km / range_km

    if margin_fraction < critical_fraction:
        return _unit(0.8 + 0.2 * (1 - margin_fraction / critical_fraction))
    if margin_fraction < warn_fraction:
        band_width = warn_fraction - critical_fraction
        return _unit(0.3 + 0.5 * (warn_fraction - margin_fraction) / band_width)

    consumed_fraction = km_since_last / range_km
    return _unit(min(0.3, consumed_fraction * 0.5))


def select_active_warning(
    warnings: Sequence[FuelWarning], current_km: float
) -> FuelWarning | None:
    active: FuelWarning | None = None
    for warning in warnings:
        if not (
            current_km - ACTIVE_WARNING_BEHIND_KM
            <= warning.at_km
            <= current_km + ACTIVE_WARNING_AHEAD_KM
        ):
            continue
        if active is None or severity_rank(warning.severity) > severity_rank(active.severity):
            active = warning
    return active


def _unit(value: float) -> float:
    return max(0.0, min(1.0, value))
