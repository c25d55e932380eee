from __future__ import annotations

from pathlib import Path
from typing import Any

import polars as pl
from django.core.management.base import BaseCommand, CommandError, CommandParser

from trip_safety.exceptions import InvalidFuelProfileError, InvalidRouteGeometryError
from trip_safety.services.fuel_analysis import analyze_fuel_on_route
from trip_safety.services.profile import default_fuel_profile, validate_fuel_profile
from trip_safety.services.projection import RouteGeometry
from trip_safety.services.types import CandidatePoint, VehicleFuelProfile

REQUIRED_COLUMNS = {"id", "name", "lat", "lng", "category"}
OPTIONAL_TEXT_COLUMNS = ("brand", "hours")
OPTIONAL_FLAG_COLUMNS = ("has_diesel", "has_unleaded")
TRUE_VALUES = {"true", "1", "yes", "y"}
FALSE_VALUES = {"false", "0", "no", "n"}


class Command(BaseCommand):
    help = "Analyse fuel coverage of a polyline6 route against a CSV of candidate places."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("--places-csv", required=True, help="CSV of candidate places")
        geometry = parser.add_mutually_exclusive_group(required=True)
        geometry.add_argument("--polyline", help="Polyline6 encoded route geometry")
        geometry.add_argument("--polyline-file", help="File holding polyline6 route geometry")
        parser.add_argument("--route-key", default="cli")
        parser.add_argument("--fuel-type", choices=["unleaded", "diesel", "lpg", "ev"])
        parser.add_argument("--tank-range-km", type=float)
        parser.add_argument("--reserve-warn-km", type=float)
        parser.add_argument("--reserve-critical-km", type=float)

    def handle(self, *args: Any, **options: Any) -> None:
        csv_path = Path(options["places_csv"])
        if not csv_path.exists():
            raise CommandError(f"CSV file not found: {csv_path}")

        encoded = options["polyline"]
        if encoded is None:
            polyline_path = Path(options["polyline_file"])
            if not polyline_path.exists():
                raise CommandError(f"Polyline file not found: {polyline_path}")
            encoded = polyline_path.read_text(encoding="utf-8").strip()

        try:
            route = RouteGeometry.from_encoded(encoded, strict=True)
        except InvalidRouteGeometryError as exc:
            raise CommandError(str(exc)) from exc

        try:
            profile = validate_fuel_profile(self._profile_from_options(options))
        except InvalidFuelProfileError as exc:
            raise CommandError(str(exc)) from exc

        candidates = self._load_candidates(csv_path)
        analysis = analyze_fuel_on_route(route, candidates, profile, options["route_key"])

        self.stdout.write(
            f"Route {analysis.route_key}: {route.total_km:.1f} km, "
            f"{analysis.total_fuel_stops} fuel stops from {len(candidates)} candidates, "
            f"max gap {analysis.max_gap_km:.1f} km"
        )
        for warning in analysis.warnings:
            line = f"[{warning.severity.upper()}] {warning.type} @ {warning.at_km:.1f} km: {warning.message}"
            if warning.severity == "critical":
                self.stdout.write(self.style.ERROR(line))
            elif warning.severity == "warn":
                self.stdout.write(self.style.WARNING(line))
            else:
                self.stdout.write(line)

        if analysis.has_critical_gaps:
            self.stdout.write(self.style.ERROR("Route has gaps longer than the vehicle range"))
        else:
            self.stdout.write(self.style.SUCCESS("Route is within vehicle range"))

    @staticmethod
    def _profile_from_options(options: dict[str, Any]) -> VehicleFuelProfile:
        default = default_fuel_profile()
        return VehicleFuelProfile(
            fuel_type=options["fuel_type"] or default.fuel_type,
            tank_range_km=options["tank_range_km"] or default.tank_range_km,
            reserve_warn_km=options["reserve_warn_km"] or default.reserve_warn_km,
            reserve_critical_km=options["reserve_critical_km"] or default.reserve_critical_km,
        )

    @staticmethod
    def _load_candidates(csv_path: Path) -> list[CandidatePoint]:
        frame = pl.read_csv(csv_path, infer_schema_length=0)
        missing_columns = REQUIRED_COLUMNS.difference(frame.columns)
        if missing_columns:
            raise CommandError(f"Missing expected columns: {sorted(missing_columns)}")

        optional_columns = [
            column
            for column in (*OPTIONAL_TEXT_COLUMNS, *OPTIONAL_FLAG_COLUMNS)
            if column in frame.columns
        ]
        normalized = frame.select(
            pl.col("id").str.strip_chars().alias("id"),
            pl.col("name").str.strip_chars().fill_null("").alias("name"),
            pl.col("lat").cast(pl.Float64, strict=False).alias("lat"),
            pl.col("lng").cast(pl.Float64, strict=False).alias("lng"),
            pl.col("category").str.strip_chars().str.to_lowercase().alias("category"),
            *[pl.col(column).str.strip_chars() for column in optional_columns],
        ).filter(
            pl.col("id").is_not_null()
            & (pl.col("id").str.len_chars() > 0)
            & pl.col("lat").is_not_null()
            & pl.col("lng").is_not_null()
            & pl.col("category").is_not_null()
        )

        candidates: list[CandidatePoint] = []
        for row in normalized.to_dicts():
            extra: dict[str, Any] = {}
            for column in OPTIONAL_TEXT_COLUMNS:
                if row.get(column):
                    extra[column] = row[column]
            for column in OPTIONAL_FLAG_COLUMNS:
                flag = _parse_flag(row.get(column))
                if flag is not None:
                    extra[column] = flag

            candidates.append(
                CandidatePoint(
                    id=row["id"],
                    name=row["name"],
                    lat=row["lat"],
                    lng=row["lng"],
                    category=row["category"],
                    extra=extra,
                )
            )
        return candidates


def _parse_flag(value: str | None) -> bool | None:
    if value is None:
        return None
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None
