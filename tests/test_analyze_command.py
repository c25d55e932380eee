from __future__ import annotations

from io import StringIO
from pathlib import Path

import pytest
from django.core.management import CommandError, call_command

from conftest import northbound_geometry, point_at_km


def _write_places(path: Path, rows: list[str], header: str) -> None:
    path.write_text("\n".join([header, *rows]), encoding="utf-8")


def test_analyze_fuel_route_reports_gaps(tmp_path: Path) -> None:
    start = point_at_km(0.0)
    middle = point_at_km(150.0)
    csv_path = tmp_path / "places.csv"
    _write_places(
        csv_path,
        [
            f"a,Start Roadhouse,{start.lat},{start.lng},fuel,Ampol,true",
            f"b,No Diesel Stop,{middle.lat},{middle.lng},Fuel,,false",
            f"c,Charger,{middle.lat},{middle.lng},ev_charging,,",
        ],
        header="id,name,lat,lng,category,brand,has_diesel",
    )
    out = StringIO()

    call_command(
        "analyze_fuel_route",
        places_csv=str(csv_path),
        polyline=northbound_geometry(300.0),
        route_key="cli-test",
        fuel_type="diesel",
        tank_range_km=250.0,
        reserve_warn_km=50.0,
        reserve_critical_km=25.0,
        stdout=out,
    )

    output = out.getvalue()
    assert "Route cli-test: 300.0 km, 1 fuel stops from 3 candidates" in output
    assert "[CRITICAL] gap @ 0.0 km" in output
    assert "Route has gaps longer than the vehicle range" in output


def test_analyze_fuel_route_reads_polyline_file(tmp_path: Path) -> None:
    start = point_at_km(0.0)
    csv_path = tmp_path / "places.csv"
    _write_places(
        csv_path,
        [f"a,Roadhouse,{start.lat},{start.lng},fuel"],
        header="id,name,lat,lng,category",
    )
    polyline_path = tmp_path / "route.txt"
    polyline_path.write_text(northbound_geometry(100.0) + "\n", encoding="utf-8")
    out = StringIO()

    call_command(
        "analyze_fuel_route",
        places_csv=str(csv_path),
        polyline_file=str(polyline_path),
        stdout=out,
    )

    assert "Route is within vehicle range" in out.getvalue()


def test_analyze_fuel_route_requires_columns(tmp_path: Path) -> None:
    csv_path = tmp_path / "places.csv"
    _write_places(csv_path, ["a,Roadhouse,fuel"], header="id,name,category")

    with pytest.raises(CommandError, match="Missing expected columns"):
        call_command(
            "analyze_fuel_route",
            places_csv=str(csv_path),
            polyline=northbound_geometry(100.0),
            stdout=StringIO(),
        )


def test_analyze_fuel_route_rejects_inverted_profile(tmp_path: Path) -> None:
    csv_path = tmp_path / "places.csv"
    _write_places(csv_path, [], header="id,name,lat,lng,category")

    with pytest.raises(CommandError, match="reserve_critical_km"):
        call_command(
            "analyze_fuel_route",
            places_csv=str(csv_path),
            polyline=northbound_geometry(100.0),
            reserve_warn_km=40.0,
            reserve_critical_km=60.0,
            stdout=StringIO(),
        )
