from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field

from app.domain.roles import UserRole
from app.schemas.auth import PHONE_PATTERN, Preferences
from app.schemas.common import Address, CamelModel


class CommunitySummary(CamelModel):
    id: str
    name: str
    status: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    community_id: Optional[str] = None
    # Resolved at read time; None when the referenced community no longer exists
    community: Optional[CommunitySummary] = None
    phone: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    full_address: Optional[str] = None
    is_active: bool
    is_email_verified: bool = False
    preferences: Optional[Dict[str, Any]] = None
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    community_id: Optional[str] = Field(None, alias="community")
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None


class BulkActionRequest(CamelModel):
    action: Literal["activate", "deactivate", "delete"]
    user_ids: List[str] = Field(..., min_length=1)
