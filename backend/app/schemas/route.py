from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.domain.pickup_lifecycle import WasteType
from app.models.route import RouteStatus, VehicleType
from app.schemas.common import CamelModel, Coordinates


class Vehicle(CamelModel):
    vehicle_id: str = Field(..., min_length=1, max_length=50)
    type: VehicleType
    capacity: Optional[float] = Field(None, ge=0)
    plate_number: Optional[str] = Field(None, max_length=20)

    @field_validator('vehicle_id')
    @classmethod
    def uppercase_id(cls, v: str) -> str:
        return v.strip().upper()


class RouteSchedule(CamelModel):
    days: List[str] = Field(..., min_length=1)
    start_time: str
    end_time: str
    estimated_duration: Optional[int] = Field(None, ge=1)


class Waypoint(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)
    coordinates: Optional[Coordinates] = None
    order: int = Field(..., ge=1)
    estimated_time: Optional[str] = None


class RouteCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    community_ids: List[str] = Field(..., min_length=1, alias="communities")
    driver_id: Optional[str] = Field(None, alias="driver")
    vehicle: Optional[Vehicle] = None
    schedule: RouteSchedule
    waste_types: List[WasteType] = Field(..., min_length=1)
    waypoints: List[Waypoint] = Field(default_factory=list)
    status: Optional[RouteStatus] = None
    max_pickups_per_day: Optional[int] = Field(None, ge=1)
    max_weight_per_day: Optional[float] = Field(None, ge=0)


class RouteUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    community_ids: Optional[List[str]] = Field(None, min_length=1, alias="communities")
    driver_id: Optional[str] = Field(None, alias="driver")
    vehicle: Optional[Vehicle] = None
    schedule: Optional[RouteSchedule] = None
    waste_types: Optional[List[WasteType]] = Field(None, min_length=1)
    waypoints: Optional[List[Waypoint]] = None
    status: Optional[RouteStatus] = None
    max_pickups_per_day: Optional[int] = Field(None, ge=1)
    max_weight_per_day: Optional[float] = Field(None, ge=0)


class RouteResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    community_ids: List[str] = Field(default_factory=list, serialization_alias="communities")
    driver_id: Optional[str] = None
    vehicle: Optional[Dict[str, Any]] = None
    schedule: Dict[str, Any]
    schedule_display: str = ""
    waste_types: List[str] = Field(default_factory=list)
    waypoints: List[Dict[str, Any]] = Field(default_factory=list)
    status: RouteStatus
    total_pickups: int = 0
    completed_pickups: int = 0
    efficiency: float = 100
    efficiency_rating: str = "N/A"
    estimated_distance: float = 0
    last_run: Optional[datetime] = None
    max_pickups_per_day: int
    max_weight_per_day: float
    created_at: datetime
    updated_at: Optional[datetime] = None
