from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Float, Text, JSON
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow
from app.domain.schedule import DEFAULT_COMMUNITY_SCHEDULE


class CommunityStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


def default_pickup_schedule():
    return {stream: dict(entry, days=list(entry["days"])) for stream, entry in DEFAULT_COMMUNITY_SCHEDULE.items()}


def default_community_settings():
    return {
        "allowUserRegistration": True,
        "requireApproval": False,
        "enableNotifications": True,
        "timezone": "America/New_York",
    }


class Community(Base):
    """A managed service region"""
    __tablename__ = "communities"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    address = Column(JSON, nullable=True)
    admin_id = Column(GUID, nullable=True)

    pickup_schedule = Column(JSON, default=default_pickup_schedule)
    status = Column(SQLEnum(CommunityStatus), default=CommunityStatus.ACTIVE, nullable=False, index=True)

    # Statistics read-model, refreshed by app.services.statistics
    total_users = Column(Integer, default=0, nullable=False)
    active_users = Column(Integer, default=0, nullable=False)
    waste_collected = Column(Float, default=0, nullable=False)
    recycling_rate = Column(Float, default=0, nullable=False)
    issues_reported = Column(Integer, default=0, nullable=False)
    issues_resolved = Column(Integer, default=0, nullable=False)
    statistics_updated_at = Column(DateTime, nullable=True)

    settings = Column(JSON, default=default_community_settings)
    contact_info = Column(JSON, nullable=True)  # phone, email, website

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def full_address(self) -> str:
        if not self.address:
            return ""
        parts = [self.address.get(key) for key in ("street", "city", "state", "zipCode")]
        return ", ".join(part for part in parts if part)

    @property
    def efficiency(self) -> int:
        if not self.issues_reported:
            return 100
        return round((self.issues_resolved or 0) / self.issues_reported * 100)

    @property
    def statistics(self) -> dict:
        return {
            "totalUsers": self.total_users or 0,
            "activeUsers": self.active_users or 0,
            "wasteCollected": self.waste_collected or 0,
            "recyclingRate": self.recycling_rate or 0,
            "issuesReported": self.issues_reported or 0,
            "issuesResolved": self.issues_resolved or 0,
            "updatedAt": self.statistics_updated_at,
        }

    def __repr__(self):
        return f"<Community {self.name}>"
