from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from pydantic import BaseModel, ValidationError

from trip_safety.exceptions import InvalidRouteGeometryError
from trip_safety.schemas import (
    FatigueUpdateRequest,
    FuelAnalysisRequest,
    FuelTrackingRequest,
)
from trip_safety.services.fatigue import (
    fatigue_escalated,
    format_drive_since_rest,
    format_total_drive_time,
    initial_fatigue_state,
    update_fatigue,
)
from trip_safety.services.fuel_analysis import analyze_fuel_on_route
from trip_safety.services.fuel_tracking import compute_fuel_tracking
from trip_safety.services.profile import default_fuel_profile
from trip_safety.services.projection import RouteGeometry
from trip_safety.services.types import FuelAnalysis, VehicleFuelProfile

logger = logging.getLogger(__name__)


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse({"status": "ok", "default_profile": asdict(default_fuel_profile())})


@csrf_exempt
@require_POST
def fuel_analysis_view(request: HttpRequest) -> HttpResponse:
    analysis_request = _validated(request, FuelAnalysisRequest)
    if isinstance(analysis_request, JsonResponse):
        return analysis_request

    route = _decode_route(analysis_request.route_geometry)
    if isinstance(route, JsonResponse):
        return route

    analysis = _analyze(route, analysis_request)
    return JsonResponse(asdict(analysis), status=200)


@csrf_exempt
@require_POST
def fuel_tracking_view(request: HttpRequest) -> HttpResponse:
    tracking_request = _validated(request, FuelTrackingRequest)
    if isinstance(tracking_request, JsonResponse):
        return tracking_request

    route = _decode_route(tracking_request.route_geometry)
    if isinstance(route, JsonResponse):
        return route

    profile = _profile_for(tracking_request)
    analysis = _analyze(route, tracking_request)

    if tracking_request.position is not None and route.is_usable:
        current_km = route.snap(tracking_request.position.to_coordinate()).km
    else:
        current_km = tracking_request.current_km or 0.0

    tracking = compute_fuel_tracking(analysis, current_km, profile)
    return JsonResponse(
        {
            "current_km": current_km,
            "analysis_summary": {
                "route_key": analysis.route_key,
                "total_fuel_stops": analysis.total_fuel_stops,
                "max_gap_km": analysis.max_gap_km,
                "has_critical_gaps": analysis.has_critical_gaps,
            },
            "tracking": asdict(tracking),
        },
        status=200,
    )


@csrf_exempt
@require_POST
def fatigue_view(request: HttpRequest) -> HttpResponse:
    fatigue_request = _validated(request, FatigueUpdateRequest)
    if isinstance(fatigue_request, JsonResponse):
        return fatigue_request

    previous = (
        fatigue_request.state.to_state()
        if fatigue_request.state is not None
        else initial_fatigue_state()
    )
    state = update_fatigue(
        previous, fatigue_request.speed_mps, fatigue_request.dt_s, now=fatigue_request.now
    )
    return JsonResponse(
        {
            "state": asdict(state),
            "escalated": fatigue_escalated(previous, state),
            "drive_since_rest": format_drive_since_rest(state),
            "total_drive_time": format_total_drive_time(state),
        },
        status=200,
    )


def _decode_route(route_geometry: str) -> RouteGeometry | JsonResponse:
    try:
        return RouteGeometry.from_encoded(route_geometry, strict=True)
    except InvalidRouteGeometryError as exc:
        return _error_response("invalid_route_geometry", str(exc), status=400)


def _analyze(route: RouteGeometry, analysis_request: FuelAnalysisRequest) -> FuelAnalysis:
    return analyze_fuel_on_route(
        route,
        [place.to_candidate() for place in analysis_request.places],
        _profile_for(analysis_request),
        analysis_request.route_key,
    )


def _profile_for(analysis_request: FuelAnalysisRequest) -> VehicleFuelProfile:
    if analysis_request.profile is None:
        return default_fuel_profile()
    return analysis_request.profile.to_profile()


def _validated(request: HttpRequest, schema: type[BaseModel]) -> Any:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        logger.info("Rejected %s payload: %d validation errors", schema.__name__, exc.error_count())
        return JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
