from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.domain.schedule import TIME_PATTERN, WEEKDAYS
from app.models.community import CommunityStatus
from app.schemas.common import Address, CamelModel, FullAddress


class StreamSchedule(CamelModel):
    days: List[str] = Field(default_factory=list)
    time: str = "08:00"

    @field_validator('days')
    @classmethod
    def validate_days(cls, v: List[str]) -> List[str]:
        days = [day.lower() for day in v]
        unknown = [day for day in days if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Invalid day(s): {', '.join(unknown)}")
        return days

    @field_validator('time')
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not TIME_PATTERN.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class PickupSchedule(CamelModel):
    general: Optional[StreamSchedule] = None
    recycling: Optional[StreamSchedule] = None
    organic: Optional[StreamSchedule] = None


class ContactInfo(CamelModel):
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)


class CommunitySettings(CamelModel):
    allow_user_registration: Optional[bool] = None
    require_approval: Optional[bool] = None
    enable_notifications: Optional[bool] = None
    timezone: Optional[str] = Field(None, max_length=64)


class CommunityCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    address: FullAddress
    admin_id: Optional[str] = Field(None, alias="admin")
    pickup_schedule: Optional[PickupSchedule] = None
    status: Optional[CommunityStatus] = None
    contact_info: Optional[ContactInfo] = None
    settings: Optional[CommunitySettings] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class CommunityUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    address: Optional[Address] = None
    admin_id: Optional[str] = Field(None, alias="admin")
    pickup_schedule: Optional[PickupSchedule] = None
    status: Optional[CommunityStatus] = None
    contact_info: Optional[ContactInfo] = None
    settings: Optional[CommunitySettings] = None


class CommunityResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    full_address: Optional[str] = None
    admin_id: Optional[str] = None
    pickup_schedule: Optional[Dict[str, Any]] = None
    status: CommunityStatus
    statistics: Dict[str, Any]
    efficiency: int
    settings: Optional[Dict[str, Any]] = None
    contact_info: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
