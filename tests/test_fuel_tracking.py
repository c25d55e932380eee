from __future__ import annotations

import pytest

from conftest import candidate, fuel_profile, northbound_geometry, point_at_km
from trip_safety.services.fuel_analysis import analyze_fuel, analyze_fuel_on_route
from trip_safety.services.fuel_tracking import (
    compute_fuel_tracking,
    compute_pressure,
    select_active_warning,
    track_position,
)
from trip_safety.services.projection import RouteGeometry
from trip_safety.services.types import FuelWarning


def _warning(at_km: float, severity: str, warning_type: str = "gap") -> FuelWarning:
    return FuelWarning(type=warning_type, severity=severity, message="test", at_km=at_km)


def test_tracking_without_stations_uses_reserve_thresholds() -> None:
    profile = fuel_profile(tank_range_km=600.0, reserve_warn_km=100.0, reserve_critical_km=50.0)
    analysis = analyze_fuel(northbound_geometry(300.0), [], profile, "r")

    early = compute_fuel_tracking(analysis, 30.0, profile)
    middle = compute_fuel_tracking(analysis, 70.0, profile)
    late = compute_fuel_tracking(analysis, 120.0, profile)

    assert early.fuel_pressure == 0.5
    assert early.is_warn is True
    assert early.is_critical is False
    assert early.km_to_next_fuel is None
    assert early.active_warning is not None
    assert early.active_warning.type == "no_fuel_on_route"
    assert middle.is_critical is True
    assert late.fuel_pressure == 1.0
    assert late.km_since_last_fuel == 120.0


def test_tracking_between_comfortable_stations() -> None:
    profile = fuel_profile()
    candidates = [candidate("a", 0.0), candidate("b", 100.0), candidate("c", 250.0)]
    analysis = analyze_fuel(northbound_geometry(300.0), candidates, profile, "r")

    state = compute_fuel_tracking(analysis, 40.0, profile)

    assert state.last_passed_station is not None
    assert state.last_passed_station.place_id == "a"
    assert state.next_station is not None
    assert state.next_station.place_id == "b"
    assert state.km_since_last_fuel == pytest.approx(40.0, abs=1e-3)
    assert state.km_to_next_fuel == pytest.approx(60.0, abs=1e-3)
    assert state.fuel_pressure == pytest.approx(40.0 / 600.0 * 0.5, abs=1e-5)
    assert state.is_warn is False
    assert state.is_critical is False


def test_tracking_before_first_station_counts_from_route_start() -> None:
    profile = fuel_profile()
    analysis = analyze_fuel(northbound_geometry(300.0), [candidate("a", 150.0)], profile, "r")

    state = compute_fuel_tracking(analysis, 20.0, profile)

    assert state.last_passed_station is None
    assert state.km_since_last_fuel == 20.0
    assert state.km_to_next_fuel == pytest.approx(130.0, abs=1e-3)
    assert state.is_warn is True


def test_tracking_after_last_station() -> None:
    profile = fuel_profile()
    analysis = analyze_fuel(northbound_geometry(700.0), [candidate("a", 100.0)], profile, "r")

    state = compute_fuel_tracking(analysis, 400.0, profile)

    assert state.next_station is None
    assert state.km_to_next_fuel is None
    assert state.fuel_pressure == pytest.approx(0.5, abs=1e-5)
    assert state.is_warn is True
    assert state.is_critical is False

    beyond = compute_fuel_tracking(analysis, 660.0, profile)
    assert beyond.is_critical is True


def test_unreachable_next_station_is_full_pressure() -> None:
    profile = fuel_profile()

    assert compute_pressure(10.0, 650.0, profile) == 1.0
    assert compute_pressure(400.0, 201.0, profile) == 1.0


def test_pressure_bands() -> None:
    profile = fuel_profile(tank_range_km=600.0, reserve_warn_km=100.0, reserve_critical_km=50.0)

    assert compute_pressure(0.0, 0.0, profile) == 0.0
    assert compute_pressure(100.0, 100.0, profile) == pytest.approx(100.0 / 600.0 * 0.5)
    assert compute_pressure(500.0, 0.0, profile) == pytest.approx(0.3)
    assert compute_pressure(100.0, 450.0, profile) == pytest.approx(0.8)
    assert compute_pressure(100.0, 450.0001, profile) == pytest.approx(0.8, abs=1e-4)
    assert compute_pressure(100.0, 500.0, profile) == pytest.approx(1.0)
    assert compute_pressure(300.0, None, profile) == pytest.approx(0.5)
    assert compute_pressure(900.0, None, profile) == 1.0


def test_pressure_stays_in_unit_range() -> None:
    profiles = [
        fuel_profile(),
        fuel_profile(tank_range_km=200.0, reserve_warn_km=80.0, reserve_critical_km=20.0),
        fuel_profile(tank_range_km=100.0, reserve_warn_km=150.0, reserve_critical_km=120.0),
    ]
    distances = [0.0, 1.0, 25.0, 80.0, 150.0, 333.0, 599.0, 601.0, 2000.0]

    for profile in profiles:
        for since in distances:
            for to_next in [None, *distances]:
                assert 0.0 <= compute_pressure(since, to_next, profile) <= 1.0


def test_pressure_rises_as_the_margin_shrinks() -> None:
    profile = fuel_profile()
    pressures = [compute_pressure(0.0, float(to_next), profile) for to_next in range(0, 700, 5)]

    assert all(later >= earlier for earlier, later in zip(pressures, pressures[1:]))
    assert pressures[0] == 0.0
    assert pressures[-1] == 1.0


def test_pressure_rises_while_driving_a_leg() -> None:
    profile = fuel_profile()
    leg_km = 300.0
    pressures = [
        compute_pressure(float(since), leg_km - since, profile) for since in range(0, 301, 10)
    ]

    assert all(later >= earlier for earlier, later in zip(pressures, pressures[1:]))


def test_active_warning_window() -> None:
    warnings = [_warning(0.0, "info"), _warning(30.0, "critical"), _warning(200.0, "warn")]

    assert select_active_warning(warnings, 20.0).at_km == 0.0
    assert select_active_warning(warnings, 40.0).severity == "critical"
    assert select_active_warning(warnings, 150.0) is None
    assert select_active_warning(warnings, 196.0).at_km == 200.0
    assert select_active_warning(warnings, 250.0).at_km == 200.0
    assert select_active_warning(warnings, 251.0) is None


def test_track_position_snaps_raw_fix() -> None:
    profile = fuel_profile()
    route = RouteGeometry.from_encoded(northbound_geometry(300.0))
    analysis = analyze_fuel_on_route(
        route, [candidate("a", 10.0), candidate("b", 200.0)], profile, "r"
    )

    state = track_position(analysis, route, point_at_km(60.0, east_offset_m=30), profile)

    assert state.last_passed_station.place_id == "a"
    assert state.km_since_last_fuel == pytest.approx(50.0, abs=1e-3)
    assert state.km_to_next_fuel == pytest.approx(140.0, abs=1e-3)
