from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field

from app.schemas.auth import Preferences
from app.schemas.common import CamelModel
from app.schemas.community import CommunitySettings, ContactInfo, PickupSchedule


class UserSettingsUpdate(CamelModel):
    preferences: Optional[Preferences] = None
    notifications: Optional[Dict[str, Any]] = None
    privacy: Optional[Dict[str, Any]] = None


class _Section(CamelModel):
    """Known keys are validated, anything else is stored as given"""
    model_config = ConfigDict(extra="allow")


class GeneralSettings(_Section):
    site_name: Optional[str] = Field(None, min_length=1, max_length=100)
    site_description: Optional[str] = Field(None, max_length=500)
    maintenance_mode: Optional[bool] = None
    registration_enabled: Optional[bool] = None
    email_verification_required: Optional[bool] = None


class SecuritySettings(_Section):
    password_min_length: Optional[int] = Field(None, ge=6, le=50)
    password_require_special_char: Optional[bool] = None
    session_timeout: Optional[int] = Field(None, ge=1, le=720)
    max_login_attempts: Optional[int] = Field(None, ge=1, le=100)
    two_factor_enabled: Optional[bool] = None


class BackupSettings(_Section):
    enabled: Optional[bool] = None
    frequency: Optional[str] = Field(None, pattern=r'^(hourly|daily|weekly|monthly)$')
    retention: Optional[int] = Field(None, ge=1, le=3650)


class SystemSettingsUpdate(CamelModel):
    general: Optional[GeneralSettings] = None
    notifications: Optional[Dict[str, Any]] = None
    backup: Optional[BackupSettings] = None
    security: Optional[SecuritySettings] = None
    analytics: Optional[Dict[str, Any]] = None


class CommunitySettingsUpdate(CamelModel):
    settings: Optional[CommunitySettings] = None
    pickup_schedule: Optional[PickupSchedule] = None
    contact_info: Optional[ContactInfo] = None
