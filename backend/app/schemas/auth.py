from pydantic import EmailStr, Field, field_validator, model_validator
from typing import Optional, Union

from app.core.config import settings
from app.domain.roles import assign_role, requires_community
from app.schemas.common import Address, CamelModel

PHONE_PATTERN = r'^\+?[0-9\-\s()]{7,20}$'


class UserRegister(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    community_name: Optional[str] = Field(None, max_length=100)
    address: Optional[Union[str, Address]] = None

    @field_validator('name', 'community_name')
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode='after')
    def validate_user_fields(self):
        """Community members must name their community and give an address"""
        if requires_community(assign_role(self.email, settings.ADMIN_EMAIL_DOMAIN)):
            missing_fields = []
            if not self.community_name:
                missing_fields.append('Community name')
            if not self.address_json():
                missing_fields.append('Address')
            if missing_fields:
                raise ValueError(f"Required fields for users: {', '.join(missing_fields)}")
        return self

    def address_json(self) -> Optional[dict]:
        if isinstance(self.address, str):
            street = self.address.strip()
            return {"street": street} if street else None
        if self.address is None:
            return None
        stored = self.address.model_dump(by_alias=True, exclude_none=True)
        return stored or None


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class NotificationPreferences(CamelModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None
    push: Optional[bool] = None


class Preferences(CamelModel):
    notifications: Optional[NotificationPreferences] = None
    language: Optional[str] = Field(None, pattern=r'^(en|es|fr|de)$')
    timezone: Optional[str] = Field(None, max_length=64)
    theme: Optional[str] = Field(None, pattern=r'^(light|dark|auto)$')


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[Address] = None
    preferences: Optional[Preferences] = None


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
