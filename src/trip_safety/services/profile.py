from __future__ import annotations

from dataclasses import replace

from django.conf import settings

from trip_safety.exceptions import InvalidFuelProfileError
from trip_safety.services.types import VehicleFuelProfile

TANK_RANGE_BOUNDS_KM = (50.0, 3000.0)
RESERVE_WARN_BOUNDS_KM = (20.0, 500.0)
RESERVE_CRITICAL_BOUNDS_KM = (10.0, 300.0)


def default_fuel_profile() -> VehicleFuelProfile:
    return VehicleFuelProfile(
        fuel_type=settings.DEFAULT_FUEL_TYPE,
        tank_range_km=float(settings.DEFAULT_TANK_RANGE_KM),
        reserve_warn_km=float(settings.DEFAULT_RESERVE_WARN_KM),
        reserve_critical_km=float(settings.DEFAULT_RESERVE_CRITICAL_KM),
    )


def validate_fuel_profile(profile: VehicleFuelProfile) -> VehicleFuelProfile:
    if not 0 < profile.reserve_critical_km < profile.reserve_warn_km < profile.tank_range_km:
        raise InvalidFuelProfileError(
            "Fuel profile must satisfy 0 < reserve_critical_km < reserve_warn_km < tank_range_km"
        )
    return profile


def normalize_fuel_profile(profile: VehicleFuelProfile) -> VehicleFuelProfile:
    """Clamp a user-entered profile into sane bounds and repair its ordering.

    Applied when a profile is saved; analysis itself accepts any profile.
    """
    tank_range_km = _clamp(profile.tank_range_km, *TANK_RANGE_BOUNDS_KM)
    reserve_warn_km = _clamp(profile.reserve_warn_km, *RESERVE_WARN_BOUNDS_KM)
    reserve_critical_km = _clamp(profile.reserve_critical_km, *RESERVE_CRITICAL_BOUNDS_KM)

    if reserve_warn_km >= tank_range_km:
        reserve_warn_km = max(RESERVE_WARN_BOUNDS_KM[0], tank_range_km - 50.0)
    if reserve_critical_km >= reserve_warn_km:
        reserve_critical_km = max(RESERVE_CRITICAL_BOUNDS_KM[0], reserve_warn_km - 10.0)

    return replace(
        profile,
        tank_range_km=tank_range_km,
        reserve_warn_km=reserve_warn_km,
        reserve_critical_km=reserve_critical_km,
    )


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, float(value)))
