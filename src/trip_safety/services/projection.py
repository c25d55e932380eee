from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from trip_safety.services.geo import (
    cumulative_distances_km,
    decode_route_geometry,
    interpolate_along_route,
    project_onto_segment,
    side_of_line,
    total_route_km,
)
from trip_safety.services.types import Coordinate, Side, SnapResult

ON_ROUTE_THRESHOLD_M = 15.0


def snap_to_polyline(
    point: Coordinate,
    path: Sequence[Coordinate],
    cumulative_km: Sequence[float],
) -> SnapResult:
    """Snap ``point`` to the nearest segment of ``path``.

    Callers must pass a path with at least two vertices; shorter paths produce
    an infinite ``distance_m``.
    """
    best_distance = float("inf")
    best_km = 0.0
    best_segment = 0
    best_t = 0.0
    best_side: Side = "on_route"

    for index in range(len(path) - 1):
        start = path[index]
        end = path[index + 1]
        projection = project_onto_segment(point, start, end)

        if projection.distance_m < best_distance:
            segment_km = cumulative_km[index + 1] - cumulative_km[index]
            best_distance = projection.distance_m
            best_segment = index
            best_t = projection.t
            best_km = cumulative_km[index] + projection.t * segment_km
            if projection.distance_m < ON_ROUTE_THRESHOLD_M:
                best_side = "on_route"
            else:
                best_side = side_of_line(point, start, end)

    return SnapResult(
        km=best_km,
        distance_m=best_distance,
        side=best_side,
        segment_index=best_segment,
        t=best_t,
    )


@dataclass(slots=True, frozen=True)
class RouteGeometry:
    """A decoded route held once per route change."""

    path: tuple[Coordinate, ...]
    cumulative_km: tuple[float, ...]

    @classmethod
    def from_path(cls, path: Sequence[Coordinate]) -> RouteGeometry:
        return cls(path=tuple(path), cumulative_km=tuple(cumulative_distances_km(path)))

    @classmethod
    def from_encoded(cls, encoded: str, *, strict: bool = False) -> RouteGeometry:
        return cls.from_path(decode_route_geometry(encoded, strict=strict))

    @property
    def total_km(self) -> float:
        return total_route_km(self.cumulative_km)

    @property
    def is_usable(self) -> bool:
        return len(self.path) >= 2

    def snap(self, point: Coordinate) -> SnapResult:
        return snap_to_polyline(point, self.path, self.cumulative_km)

    def interpolate(self, km: float) -> Coordinate:
        return interpolate_along_route(km, self.path, self.cumulative_km)
