"""Weekly schedules, route matching and waypoint geometry"""
import math
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.core.exceptions import ValidationError

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DAY_ABBREVIATIONS = {day: day[:3].capitalize() for day in WEEKDAYS}

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")

EARTH_RADIUS_KM = 6371

DEFAULT_COMMUNITY_SCHEDULE: Dict[str, Dict[str, Any]] = {
    "general": {"days": ["monday", "wednesday", "friday"], "time": "08:00"},
    "recycling": {"days": ["tuesday", "saturday"], "time": "09:00"},
    "organic": {"days": ["thursday"], "time": "10:00"},
}


def weekday_name(moment: datetime) -> str:
    return WEEKDAYS[moment.weekday()]


def to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value or ""):
        raise ValidationError("Time must be in HH:MM format", field="schedule")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def normalize_time(value: str) -> str:
    """Zero-pad a valid time to HH:MM"""
    minutes = to_minutes(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def validate_route_schedule(schedule: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a route schedule and fill in its duration.

    End time must be strictly after start time; estimatedDuration defaults to
    the gap between the two, in minutes.
    """
    days = [str(day).lower() for day in schedule.get("days") or []]
    if not days:
        raise ValidationError("At least one day must be selected", field="schedule.days")
    unknown = [day for day in days if day not in WEEKDAYS]
    if unknown:
        raise ValidationError(f"Invalid schedule day(s): {', '.join(unknown)}", field="schedule.days")

    start = to_minutes(schedule.get("startTime", ""))
    end = to_minutes(schedule.get("endTime", ""))
    if end <= start:
        raise ValidationError("End time must be after start time", field="schedule.endTime")

    normalized = dict(schedule)
    normalized["days"] = days
    normalized["startTime"] = normalize_time(schedule["startTime"])
    normalized["endTime"] = normalize_time(schedule["endTime"])
    if not normalized.get("estimatedDuration"):
        normalized["estimatedDuration"] = end - start
    return normalized


def schedule_display(schedule: Optional[Dict[str, Any]]) -> str:
    if not schedule or not schedule.get("days"):
        return ""
    days = ", ".join(DAY_ABBREVIATIONS.get(day, day) for day in schedule["days"])
    return f"{days} ({schedule.get('startTime')} - {schedule.get('endTime')})"


def sort_waypoints(waypoints: Optional[Iterable[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return sorted(waypoints or [], key=lambda point: point.get("order", 0))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimated_distance(waypoints: Sequence[Dict[str, Any]]) -> float:
    """Sum of great-circle legs between consecutive waypoints, km to 2dp"""
    points = [w.get("coordinates") or {} for w in waypoints or []]
    if len(points) < 2:
        return 0
    total = 0.0
    for prev, curr in zip(points, points[1:]):
        if None in (prev.get("latitude"), prev.get("longitude"), curr.get("latitude"), curr.get("longitude")):
            continue
        total += haversine_km(prev["latitude"], prev["longitude"], curr["latitude"], curr["longitude"])
    return round(total, 2)


def route_serves(
    schedule: Optional[Dict[str, Any]],
    waste_types: Optional[Sequence[str]],
    community_ids: Optional[Sequence[str]],
    day: str,
    waste_type: str,
    community_id: Optional[str] = None,
) -> bool:
    """Whether a route runs on `day`, accepts `waste_type` and (if given) covers the community"""
    if day not in ((schedule or {}).get("days") or []):
        return False
    if waste_type not in (waste_types or []):
        return False
    if community_id and str(community_id) not in [str(c) for c in community_ids or []]:
        return False
    return True


def efficiency_rating(total: int, completed: int) -> str:
    if not total:
        return "N/A"
    return f"{round(completed / total * 100)}%"
