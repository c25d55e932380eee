from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Literal

import polyline

from trip_safety.exceptions import InvalidRouteGeometryError
from trip_safety.services.types import Coordinate, SegmentProjection

EARTH_RADIUS_M = 6_371_008.8
POLYLINE_PRECISION = 6
DEGENERATE_SEGMENT_EPSILON = 1e-18


def haversine_distance_m(a: Coordinate, b: Coordinate) -> float:
    lat1_rad = math.radians(a.lat)
    lat2_rad = math.radians(b.lat)
    dlat = lat2_rad - lat1_rad
    dlng = math.radians(b.lng - a.lng)

    h = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2.0) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def cumulative_distances_km(path: Sequence[Coordinate]) -> list[float]:
    """Distance in km from the first vertex to every vertex of ``path``."""
    if not path:
        return []

    cumulative = [0.0]
    for previous, current in zip(path[:-1], path[1:]):
        cumulative.append(cumulative[-1] + haversine_distance_m(previous, current) / 1000.0)
    return cumulative


def total_route_km(cumulative_km: Sequence[float]) -> float:
    return cumulative_km[-1] if cumulative_km else 0.0


def _flatten(point: Coordinate, cos_lat: float) -> tuple[float, float]:
    return point.lng * cos_lat, point.lat


def _mean_latitude_cosine(a: Coordinate, b: Coordinate) -> float:
    return math.cos(math.radians((a.lat + b.lat) / 2.0))


def project_onto_segment(p: Coordinate, a: Coordinate, b: Coordinate) -> SegmentProjection:
    """Closest point to ``p`` on segment ``a -> b``.

    The fraction ``t`` is solved in a local equirectangular frame and clamped
    to the segment; the returned distance is the great-circle distance to the
    interpolated closest point.
    """
    cos_lat = _mean_latitude_cosine(a, b)
    ax, ay = _flatten(a, cos_lat)
    bx, by = _flatten(b, cos_lat)
    px, py = _flatten(p, cos_lat)

    dx = bx - ax
    dy = by - ay
    length_sq = dx * dx + dy * dy

    if length_sq < DEGENERATE_SEGMENT_EPSILON:
        t = 0.0
    else:
        t = ((px - ax) * dx + (py - ay) * dy) / length_sq
        t = max(0.0, min(1.0, t))

    closest = Coordinate(lat=a.lat + t * (b.lat - a.lat), lng=a.lng + t * (b.lng - a.lng))
    return SegmentProjection(t=t, distance_m=haversine_distance_m(p, closest))


def side_of_line(p: Coordinate, a: Coordinate, b: Coordinate) -> Literal["left", "right"]:
    """Which side of the travel direction ``a -> b`` the point ``p`` lies on.

    Routes are driven in the southern hemisphere, where a non-negative cross
    product of AB x AP in the flattened frame is the driver's right.
    """
    cos_lat = _mean_latitude_cosine(a, b)
    abx = (b.lng - a.lng) * cos_lat
    aby = b.lat - a.lat
    apx = (p.lng - a.lng) * cos_lat
    apy = p.lat - a.lat
    cross = abx * apy - aby * apx
    return "right" if cross >= 0 else "left"


def interpolate_along_route(
    km: float, path: Sequence[Coordinate], cumulative_km: Sequence[float]
) -> Coordinate:
    if km <= 0 or len(path) < 2:
        return path[0]
    if km >= cumulative_km[-1]:
        return path[-1]

    lo = 0
    hi = len(cumulative_km) - 1
    while lo < hi - 1:
        mid = (lo + hi) // 2
        if cumulative_km[mid] <= km:
            lo = mid
        else:
            hi = mid

    segment_km = cumulative_km[hi] - cumulative_km[lo]
    t = (km - cumulative_km[lo]) / segment_km if segment_km > 0 else 0.0
    start = path[lo]
    end = path[hi]
    return Coordinate(
        lat=start.lat + t * (end.lat - start.lat),
        lng=start.lng + t * (end.lng - start.lng),
    )


def decode_route_geometry(encoded: str, *, strict: bool = False) -> list[Coordinate]:
    """Decode a Polyline6 string into coordinates.

    Malformed input yields an empty path unless ``strict`` is set, in which
    case ``InvalidRouteGeometryError`` is raised.
    """
    if not encoded:
        return []

    try:
        decoded = polyline.decode(encoded, POLYLINE_PRECISION)
    except (IndexError, ValueError, TypeError) as exc:
        if strict:
            raise InvalidRouteGeometryError("Route geometry is not a valid polyline6 string") from exc
        return []

    return [Coordinate(lat=lat, lng=lng) for lat, lng in decoded]


def encode_route_geometry(path: Sequence[Coordinate]) -> str:
    return polyline.encode([(point.lat, point.lng) for point in path], POLYLINE_PRECISION)
