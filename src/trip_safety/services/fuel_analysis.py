from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from trip_safety.services.projection import RouteGeometry
from trip_safety.services.types import (
    CandidatePoint,
    Coordinate,
    FuelAnalysis,
    FuelLeg,
    FuelStation,
    FuelWarning,
    VehicleFuelProfile,
)

logger = logging.getLogger(__name__)

MAX_SNAP_DISTANCE_M = 2000.0
DEDUPLICATE_WITHIN_KM = 0.5
MIN_EDGE_LEG_KM = 0.1

FUEL_CATEGORIES = frozenset({"fuel", "ev_charging"})
SEVERITY_RANK = {"critical": 3, "warn": 2, "info": 1}

NO_FUEL_MESSAGE = "No fuel stations found along this route"


def severity_rank(severity: str) -> int:
    return SEVERITY_RANK.get(severity, 0)


def relevant_categories(fuel_type: str) -> frozenset[str]:
    if fuel_type == "ev":
        return frozenset({"ev_charging"})
    return frozenset({"fuel"})


def analyze_fuel(
    route_geometry: str,
    candidates: Iterable[CandidatePoint],
    profile: VehicleFuelProfile,
    route_key: str,
) -> FuelAnalysis:
    """Assess fuel coverage of an encoded route against cached candidate points.

    Never raises: an undecodable or single-point route yields the degenerate
    analysis carrying one critical ``no_fuel_on_route`` warning.
    """
    route = RouteGeometry.from_encoded(route_geometry)
    return analyze_fuel_on_route(route, candidates, profile, route_key)


def reanalyze_fuel_for_reroute(
    reroute_geometry: str,
    cached_candidates: Iterable[CandidatePoint],
    profile: VehicleFuelProfile,
    route_key: str,
) -> FuelAnalysis:
    return analyze_fuel(reroute_geometry, cached_candidates, profile, route_key)


def analyze_fuel_on_route(
    route: RouteGeometry,
    candidates: Iterable[CandidatePoint],
    profile: VehicleFuelProfile,
    route_key: str,
) -> FuelAnalysis:
    if not route.is_usable:
        logger.info("Route %s has fewer than two vertices; returning empty fuel analysis", route_key)
        return _empty_analysis(profile, route_key)

    route_total_km = route.total_km
    stations = _snap_stations(route, candidates, profile)
    stations.sort(key=lambda station: station.km_along_route)
    deduplicated = deduplicate_stations(stations)

    legs = build_fuel_legs(deduplicated, route_total_km, profile)
    warnings = generate_warnings(legs, deduplicated, profile)

    logger.debug(
        "Fuel analysis for %s: %.1f km, %d stations (%d before de-dup), %d legs, %d warnings",
        route_key,
        route_total_km,
        len(deduplicated),
        len(stations),
        len(legs),
        len(warnings),
    )

    return FuelAnalysis(
        profile=profile,
        stations=tuple(deduplicated),
        legs=tuple(legs),
        warnings=tuple(warnings),
        max_gap_km=max((leg.distance_km for leg in legs), default=0.0),
        total_fuel_stops=len(deduplicated),
        has_critical_gaps=any(leg.gap_exceeds_range for leg in legs),
        computed_at=_now_iso(),
        route_key=route_key,
    )


def _snap_stations(
    route: RouteGeometry,
    candidates: Iterable[CandidatePoint],
    profile: VehicleFuelProfile,
) -> list[FuelStation]:
    categories = relevant_categories(profile.fuel_type)
    stations: list[FuelStation] = []

    for candidate in candidates:
        if candidate.category not in FUEL_CATEGORIES or candidate.category not in categories:
            continue

        snap = route.snap(Coordinate(lat=candidate.lat, lng=candidate.lng))
        if snap.distance_m > MAX_SNAP_DISTANCE_M:
            continue

        extra = candidate.extra or {}
        station = FuelStation(
            place_id=candidate.id,
            name=candidate.name,
            lat=candidate.lat,
            lng=candidate.lng,
            category=candidate.category,
            km_along_route=snap.km,
            snap_distance_m=snap.distance_m,
            side=snap.side,
            brand=extra.get("brand"),
            hours=extra.get("hours"),
            has_diesel=extra.get("has_diesel"),
            has_unleaded=extra.get("has_unleaded"),
        )

        # Unknown fuel availability passes; only an explicit False excludes.
        if profile.fuel_type == "diesel" and station.has_diesel is False:
            continue
        if profile.fuel_type == "unleaded" and station.has_unleaded is False:
            continue

        stations.append(station)

    return stations


def deduplicate_stations(stations: Sequence[FuelStation]) -> list[FuelStation]:
    """Collapse stations closer than 0.5 km along the route, keeping the one nearer the road."""
    if len(stations) <= 1:
        return list(stations)

    kept = [stations[0]]
    for station in stations[1:]:
        previous = kept[-1]
        if station.km_along_route - previous.km_along_route < DEDUPLICATE_WITHIN_KM:
            if station.snap_distance_m < previous.snap_distance_m:
                kept[-1] = station
        else:
            kept.append(station)
    return kept


def build_fuel_legs(
    stations: Sequence[FuelStation],
    route_total_km: float,
    profile: VehicleFuelProfile,
) -> list[FuelLeg]:
    if not stations:
        return [_leg(0, None, None, route_total_km, profile)]

    legs: list[FuelLeg] = []

    first_gap = stations[0].km_along_route
    if first_gap > MIN_EDGE_LEG_KM:
        legs.append(_leg(0, None, stations[0], first_gap, profile))

    for current, following in zip(stations[:-1], stations[1:]):
        gap = following.km_along_route - current.km_along_route
        legs.append(_leg(len(legs), current, following, gap, profile))

    last_station = stations[-1]
    tail_gap = route_total_km - last_station.km_along_route
    if tail_gap > MIN_EDGE_LEG_KM:
        legs.append(_leg(len(legs), last_station, None, tail_gap, profile))

    return legs


def generate_warnings(
    legs: Sequence[FuelLeg],
    stations: Sequence[FuelStation],
    profile: VehicleFuelProfile,
) -> list[FuelWarning]:
    if not stations:
        return [_no_fuel_warning()]

    warnings: list[FuelWarning] = []

    for leg in legs:
        from_name = leg.from_station.name if leg.from_station else "Start"
        to_name = leg.to_station.name if leg.to_station else "End"
        at_km = leg.from_station.km_along_route if leg.from_station else 0.0

        if leg.gap_exceeds_range:
            warnings.append(
                FuelWarning(
                    type="gap",
                    severity="critical",
                    message=(
                        f"{round(leg.distance_km)}km gap between {from_name} and {to_name} "
                        f"exceeds your {_format_km(profile.tank_range_km)}km range"
                    ),
                    at_km=at_km,
                    station=leg.from_station,
                    gap_km=leg.distance_km,
                )
            )
        elif leg.gap_exceeds_warn:
            margin = profile.tank_range_km - leg.distance_km
            warnings.append(
                FuelWarning(
                    type="long_stretch",
                    severity="warn" if margin < profile.reserve_critical_km else "info",
                    message=(
                        f"{round(leg.distance_km)}km between {from_name} and {to_name} "
                        f"- margin {round(margin)}km"
                    ),
                    at_km=at_km,
                    station=leg.from_station,
                    gap_km=leg.distance_km,
                )
            )

    warn_threshold_km = profile.tank_range_km - profile.reserve_warn_km
    for index, leg in enumerate(legs):
        if leg.from_station is None or leg.distance_km <= profile.reserve_warn_km:
            continue

        is_final_leg = index == len(legs) - 1
        if is_final_leg or leg.distance_km > warn_threshold_km:
            warnings.append(
                FuelWarning(
                    type="last_chance",
                    severity="warn",
                    message=(
                        f"Last fuel for {round(leg.distance_km)}km at {leg.from_station.name}"
                    ),
                    at_km=leg.from_station.km_along_route,
                    station=leg.from_station,
                    gap_km=leg.distance_km,
                )
            )

    return sorted(warnings, key=lambda warning: (-severity_rank(warning.severity), warning.at_km))


def _leg(
    idx: int,
    from_station: FuelStation | None,
    to_station: FuelStation | None,
    distance_km: float,
    profile: VehicleFuelProfile,
) -> FuelLeg:
    return FuelLeg(
        idx=idx,
        from_station=from_station,
        to_station=to_station,
        distance_km=distance_km,
        gap_exceeds_range=distance_km > profile.tank_range_km,
        gap_exceeds_warn=distance_km > (profile.tank_range_km - profile.reserve_warn_km),
    )


def _no_fuel_warning() -> FuelWarning:
    return FuelWarning(
        type="no_fuel_on_route",
        severity="critical",
        message=NO_FUEL_MESSAGE,
        at_km=0.0,
    )


def _empty_analysis(profile: VehicleFuelProfile, route_key: str) -> FuelAnalysis:
    return FuelAnalysis(
        profile=profile,
        stations=(),
        legs=(),
        warnings=(_no_fuel_warning(),),
        max_gap_km=0.0,
        total_fuel_stops=0,
        has_critical_gaps=False,
        computed_at=_now_iso(),
        route_key=route_key,
    )


def _format_km(value: float) -> str:
    return f"{value:g}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
