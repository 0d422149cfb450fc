from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Float, Text, JSON
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow
from app.domain.schedule import efficiency_rating, estimated_distance, schedule_display


class RouteStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    SUSPENDED = "suspended"


class VehicleType(str, enum.Enum):
    TRUCK = "truck"
    VAN = "van"
    COMPACTOR = "compactor"
    RECYCLING_TRUCK = "recycling_truck"


DEFAULT_MAX_PICKUPS_PER_DAY = 50
DEFAULT_MAX_WEIGHT_PER_DAY = 1000


class Route(Base):
    """A recurring driver/vehicle itinerary covering one or more communities"""
    __tablename__ = "routes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), index=True, nullable=False)
    description = Column(Text, nullable=True)

    community_ids = Column(JSON, default=list)  # list of community GUIDs
    driver_id = Column(GUID, nullable=True, index=True)
    vehicle = Column(JSON, nullable=True)  # vehicleId, type, capacity, plateNumber

    # days, startTime, endTime (HH:MM), estimatedDuration (minutes)
    schedule = Column(JSON, nullable=False)
    waste_types = Column(JSON, default=list)
    waypoints = Column(JSON, default=list)

    status = Column(SQLEnum(RouteStatus), default=RouteStatus.ACTIVE, nullable=False, index=True)

    # Metrics read-model
    total_pickups = Column(Integer, default=0, nullable=False)
    completed_pickups = Column(Integer, default=0, nullable=False)
    efficiency = Column(Float, default=100, nullable=False)
    last_run = Column(DateTime, nullable=True)

    max_pickups_per_day = Column(Integer, default=DEFAULT_MAX_PICKUPS_PER_DAY, nullable=False)
    max_weight_per_day = Column(Float, default=DEFAULT_MAX_WEIGHT_PER_DAY, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def schedule_display(self) -> str:
        return schedule_display(self.schedule)

    @property
    def efficiency_rating(self) -> str:
        return efficiency_rating(self.total_pickups or 0, self.completed_pickups or 0)

    @property
    def estimated_distance(self) -> float:
        return estimated_distance(self.waypoints or [])

    @property
    def start_time(self) -> str:
        return (self.schedule or {}).get("startTime", "")

    def __repr__(self):
        return f"<Route {self.name}>"
