from __future__ import annotations

import math

import pytest
from django.test import Client

from trip_safety.services.geo import EARTH_RADIUS_M, encode_route_geometry
from trip_safety.services.types import CandidatePoint, Coordinate, VehicleFuelProfile

KM_PER_DEGREE = math.pi * EARTH_RADIUS_M / 180.0 / 1000.0
ROUTE_START = Coordinate(lat=-30.0, lng=135.0)


def point_at_km(km: float, east_offset_m: float = 0.0) -> Coordinate:
    """A point ``km`` north of the route start, shifted east by ``east_offset_m``."""
    lat = ROUTE_START.lat + km / KM_PER_DEGREE
    lng_offset = east_offset_m / (KM_PER_DEGREE * 1000.0 * math.cos(math.radians(lat)))
    return Coordinate(lat=lat, lng=ROUTE_START.lng + lng_offset)


def northbound_path(total_km: float, vertices: int = 11) -> list[Coordinate]:
    step = total_km / (vertices - 1)
    return [point_at_km(index * step) for index in range(vertices)]


def northbound_geometry(total_km: float, vertices: int = 11) -> str:
    return encode_route_geometry(northbound_path(total_km, vertices))


def candidate(
    place_id: str,
    km: float,
    *,
    east_offset_m: float = 0.0,
    category: str = "fuel",
    **extra: object,
) -> CandidatePoint:
    point = point_at_km(km, east_offset_m)
    return CandidatePoint(
        id=place_id,
        name=f"Roadhouse {place_id}",
        lat=point.lat,
        lng=point.lng,
        category=category,
        extra=dict(extra),
    )


def fuel_profile(
    tank_range_km: float = 600.0,
    reserve_warn_km: float = 100.0,
    reserve_critical_km: float = 50.0,
    fuel_type: str = "unleaded",
) -> VehicleFuelProfile:
    return VehicleFuelProfile(
        fuel_type=fuel_type,
        tank_range_km=tank_range_km,
        reserve_warn_km=reserve_warn_km,
        reserve_critical_km=reserve_critical_km,
    )


@pytest.fixture
def api_client() -> Client:
    return Client()
