from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from app.domain.pickup_lifecycle import PickupPriority, PickupStatus, TimeSlot, WasteType
from app.schemas.common import CamelModel, FullAddress, UTCDateTime


class PickupCreate(CamelModel):
    scheduled_date: UTCDateTime
    time_slot: TimeSlot
    waste_type: WasteType
    address: FullAddress
    notes: Optional[str] = Field(None, max_length=500)
    estimated_weight: Optional[float] = Field(None, ge=0)
    priority: Optional[PickupPriority] = None
    # Honoured only for callers without a community of their own
    community_id: Optional[str] = Field(None, alias="community")


class PickupUpdate(CamelModel):
    scheduled_date: Optional[UTCDateTime] = None
    time_slot: Optional[TimeSlot] = None
    waste_type: Optional[WasteType] = None
    address: Optional[FullAddress] = None
    notes: Optional[str] = Field(None, max_length=500)
    estimated_weight: Optional[float] = Field(None, ge=0)
    # Admin only
    status: Optional[PickupStatus] = None
    route_id: Optional[str] = Field(None, alias="route")
    driver_id: Optional[str] = Field(None, alias="driver")
    vehicle: Optional[str] = Field(None, max_length=50)
    actual_weight: Optional[float] = Field(None, ge=0)
    priority: Optional[PickupPriority] = None


class PickupComplete(CamelModel):
    driver_id: Optional[str] = Field(None, alias="driver")
    vehicle: Optional[str] = Field(None, max_length=50)
    actual_weight: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class PickupCancel(CamelModel):
    reason: str = Field("Cancelled by user", min_length=1, max_length=200)


class PickupFeedback(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class PickupFilters(CamelModel):
    status: Optional[PickupStatus] = None
    waste_type: Optional[WasteType] = None
    community: Optional[str] = None
    user: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None


class PickupResponse(CamelModel):
    id: str
    user_id: str
    community_id: Optional[str] = None
    route_id: Optional[str] = None
    scheduled_date: datetime
    time_slot: TimeSlot
    time_slot_display: str
    waste_type: WasteType
    address: Dict[str, Any]
    full_address: str = ""
    notes: Optional[str] = None
    status: PickupStatus
    status_display: str
    priority: PickupPriority
    estimated_weight: float = 0
    actual_weight: Optional[float] = None
    driver_id: Optional[str] = None
    vehicle: Optional[str] = None
    completed_at: Optional[datetime] = None
    feedback: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = None
    source: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
