from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Float, Text, JSON

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow
from app.domain.pickup_lifecycle import (
    PickupPriority,
    PickupSnapshot,
    PickupStatus,
    TimeSlot,
    WasteType,
    status_display,
    time_slot_display,
)


class Pickup(Base):
    """A single scheduled collection for one user"""
    __tablename__ = "pickups"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, nullable=False, index=True)
    community_id = Column(GUID, nullable=True, index=True)
    route_id = Column(GUID, nullable=True, index=True)

    scheduled_date = Column(DateTime, nullable=False, index=True)
    time_slot = Column(SQLEnum(TimeSlot), nullable=False)
    waste_type = Column(SQLEnum(WasteType), nullable=False)
    address = Column(JSON, nullable=False)  # street, city, state, zipCode, coordinates
    notes = Column(Text, nullable=True)

    status = Column(SQLEnum(PickupStatus), default=PickupStatus.SCHEDULED, nullable=False, index=True)
    priority = Column(SQLEnum(PickupPriority), default=PickupPriority.NORMAL, nullable=False)

    estimated_weight = Column(Float, default=0, nullable=False)
    actual_weight = Column(Float, nullable=True)

    driver_id = Column(GUID, nullable=True, index=True)
    vehicle = Column(String(50), nullable=True)
    completed_at = Column(DateTime, nullable=True)

    images = Column(JSON, default=list)
    feedback = Column(JSON, nullable=True)  # rating, comment, submittedAt

    # Request metadata
    created_by = Column(String(20), default="user")
    source = Column(String(20), default="web")
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def full_address(self) -> str:
        if not self.address:
            return ""
        parts = [self.address.get(key) for key in ("street", "city", "state", "zipCode")]
        return ", ".join(part for part in parts if part)

    @property
    def time_slot_display(self) -> str:
        return time_slot_display(self.time_slot)

    @property
    def status_display(self) -> str:
        return status_display(self.status)

    def snapshot(self) -> PickupSnapshot:
        return PickupSnapshot(
            status=PickupStatus(self.status),
            completed_at=self.completed_at,
            notes=self.notes,
            driver_id=self.driver_id,
            vehicle=self.vehicle,
            actual_weight=self.actual_weight,
        )

    def apply(self, snapshot: PickupSnapshot) -> None:
        self.status = snapshot.status
        self.completed_at = snapshot.completed_at
        self.notes = snapshot.notes
        self.driver_id = snapshot.driver_id
        self.vehicle = snapshot.vehicle
        self.actual_weight = snapshot.actual_weight

    def __repr__(self):
        return f"<Pickup {self.id} {self.status}>"
