"""Driver fatigue tracking during active navigation.

``update_fatigue`` is a reducer: callers thread the returned state back in on
every GPS tick. Timings follow the common "15 minute break every two hours"
road-safety guidance.
"""

from __future__ import annotations

import time
from dataclasses import replace

from trip_safety.services.types import FatigueState, FatigueWarningLevel

REST_SPEED_THRESHOLD_MPS = 5 / 3.6
REST_DETECTION_DELAY_S = 120.0
QUALIFIED_REST_DURATION_S = 900.0

SUGGESTED_THRESHOLD_S = 90 * 60
RECOMMENDED_THRESHOLD_S = 120 * 60
URGENT_THRESHOLD_S = 150 * 60
TOTAL_DRIVE_URGENT_S = 10 * 60 * 60

WARNING_LEVELS: tuple[FatigueWarningLevel, ...] = ("none", "suggested", "recommended", "urgent")


def initial_fatigue_state() -> FatigueState:
    return FatigueState()


def start_fatigue_trip(now: float | None = None) -> FatigueState:
    return FatigueState(trip_started_at=time.time() if now is None else now)


def update_fatigue(
    prev: FatigueState,
    speed_mps: float | None,
    dt_s: float,
    now: float | None = None,
) -> FatigueState:
    """Advance ``prev`` by one tick of ``dt_s`` seconds at ``speed_mps``.

    Non-positive ``dt_s`` returns ``prev`` itself. A missing speed counts as
    stopped. ``now`` (epoch seconds) stamps a qualifying rest and defaults to
    the wall clock.
    """
    if dt_s <= 0:
        return prev

    speed = speed_mps if speed_mps is not None else 0.0
    is_moving = speed > REST_SPEED_THRESHOLD_MPS

    total_drive_time_s = prev.total_drive_time_s
    total_rest_time_s = prev.total_rest_time_s
    last_rest_at = prev.last_rest_at
    time_since_last_rest_s = prev.time_since_last_rest_s
    is_resting = prev.is_resting
    current_rest_duration_s = prev.current_rest_duration_s

    if is_moving:
        total_drive_time_s += dt_s
        time_since_last_rest_s += dt_s

        if is_resting:
            if current_rest_duration_s >= QUALIFIED_REST_DURATION_S:
                last_rest_at = time.time() if now is None else now
                time_since_last_rest_s = 0.0
            is_resting = False
        # A stop shorter than the detection delay is traffic, not rest.
        current_rest_duration_s = 0.0
    else:
        current_rest_duration_s += dt_s
        if current_rest_duration_s >= REST_DETECTION_DELAY_S:
            is_resting = True
            total_rest_time_s += dt_s

    return replace(
        prev,
        total_drive_time_s=total_drive_time_s,
        total_rest_time_s=total_rest_time_s,
        last_rest_at=last_rest_at,
        time_since_last_rest_s=time_since_last_rest_s,
        is_resting=is_resting,
        current_rest_duration_s=current_rest_duration_s,
        warning_level=fatigue_warning_level(time_since_last_rest_s, total_drive_time_s),
    )


def fatigue_warning_level(
    time_since_last_rest_s: float, total_drive_time_s: float
) -> FatigueWarningLevel:
    if total_drive_time_s >= TOTAL_DRIVE_URGENT_S or time_since_last_rest_s >= URGENT_THRESHOLD_S:
        return "urgent"
    if time_since_last_rest_s >= RECOMMENDED_THRESHOLD_S:
        return "recommended"
    if time_since_last_rest_s >= SUGGESTED_THRESHOLD_S:
        return "suggested"
    return "none"


def fatigue_escalated(prev: FatigueState, next_state: FatigueState) -> bool:
    return WARNING_LEVELS.index(next_state.warning_level) > WARNING_LEVELS.index(
        prev.warning_level
    )


def format_drive_since_rest(state: FatigueState) -> str:
    seconds = state.time_since_last_rest_s
    if seconds < 60:
        return "< 1m driving"
    minutes = round(seconds / 60)
    if minutes < 60:
        return f"{minutes}m driving"
    return f"{_hours_minutes(minutes)} driving"


def format_total_drive_time(state: FatigueState) -> str:
    minutes = round(state.total_drive_time_s / 60)
    if minutes < 60:
        return f"Total: {minutes}m"
    return f"Total: {_hours_minutes(minutes)}"


def _hours_minutes(minutes: int) -> str:
    hours, remainder = divmod(minutes, 60)
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}m"
