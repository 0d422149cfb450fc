"""
Settings Service

User settings live on the user row. System settings are stored one
SystemSetting row per section and always read merged over SYSTEM_DEFAULTS,
so a section that was never saved still comes back complete.
"""
import copy
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import CommunityNotFoundError
from app.core.logging_config import logger
from app.models.community import Community
from app.models.system_setting import SystemSetting
from app.models.user import User, default_preferences
from app.schemas.settings import CommunitySettingsUpdate, SystemSettingsUpdate, UserSettingsUpdate
from app.services import access_control

DEFAULT_NOTIFICATION_SETTINGS = {
    "pickupReminders": True,
    "issueUpdates": True,
    "communityNews": True,
    "systemUpdates": True,
    "frequency": "daily",
}

DEFAULT_PRIVACY = {
    "profileVisibility": "community",
    "dataSharing": False,
    "analytics": True,
}

SYSTEM_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "general": {
        "siteName": "EcoWasteConnect",
        "siteDescription": "Smart waste management for connected communities",
        "maintenanceMode": False,
        "registrationEnabled": True,
        "emailVerificationRequired": False,
    },
    "notifications": {
        "emailSettings": {"enabled": True, "fromName": "EcoWasteConnect"},
        "smsSettings": {"enabled": False},
        "pushSettings": {"enabled": True, "webPushEnabled": True, "mobileEnabled": True},
    },
    "backup": {
        "enabled": True,
        "frequency": "daily",
        "retention": 30,
    },
    "security": {
        "passwordMinLength": 6,
        "passwordRequireSpecialChar": False,
        "sessionTimeout": 24,
        "maxLoginAttempts": 5,
        "twoFactorEnabled": False,
    },
    "analytics": {
        "enabled": True,
        "retentionDays": 365,
    },
}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SettingsService:
    """Service for user, system and community settings"""

    # ==================== USER ====================

    def get_user_settings(self, user: User) -> Dict[str, Any]:
        return {
            "preferences": deep_merge(default_preferences(), user.preferences or {}),
            "notifications": deep_merge(DEFAULT_NOTIFICATION_SETTINGS, user.notification_settings or {}),
            "privacy": deep_merge(DEFAULT_PRIVACY, user.privacy or {}),
        }

    async def update_user_settings(self, db: AsyncSession, user: User, data: UserSettingsUpdate) -> Dict[str, Any]:
        if data.preferences is not None:
            user.preferences = deep_merge(
                user.preferences or default_preferences(),
                data.preferences.model_dump(by_alias=True, exclude_none=True),
            )
        if data.notifications is not None:
            user.notification_settings = deep_merge(user.notification_settings or {}, data.notifications)
        if data.privacy is not None:
            user.privacy = deep_merge(user.privacy or {}, data.privacy)

        await db.commit()
        await db.refresh(user)
        return self.get_user_settings(user)

    # ==================== SYSTEM ====================

    async def get_system_settings(self, db: AsyncSession) -> Dict[str, Any]:
        rows = (await db.execute(select(SystemSetting))).scalars().all()
        stored = {row.key: row.value for row in rows}
        return {
            section: deep_merge(defaults, stored.get(section, {}))
            for section, defaults in SYSTEM_DEFAULTS.items()
        }

    async def update_system_settings(self, db: AsyncSession, actor: User, data: SystemSettingsUpdate) -> Dict[str, Any]:
        incoming = data.model_dump(by_alias=True, exclude_none=True)
        if incoming:
            existing = {
                row.key: row
                for row in (await db.execute(
                    select(SystemSetting).where(SystemSetting.key.in_(list(incoming)))
                )).scalars().all()
            }
            for section, value in incoming.items():
                row = existing.get(section)
                if row is None:
                    db.add(SystemSetting(key=section, value=value, updated_by=actor.id))
                else:
                    row.value = deep_merge(row.value or {}, value)
                    row.updated_by = actor.id
            await db.commit()
            logger.info(f"System settings [{', '.join(incoming)}] updated by {actor.email}")

        return await self.get_system_settings(db)

    # ==================== COMMUNITY ====================

    async def _community_for(self, db: AsyncSession, user: User, community_id: str) -> Community:
        access_control.ensure_valid_id(community_id)
        community = await db.get(Community, community_id)
        if not community:
            raise CommunityNotFoundError(community_id)
        access_control.ensure(
            access_control.can_manage_community(user, community.id) or community.admin_id == user.id
        )
        return community

    def _community_settings(self, community: Community) -> Dict[str, Any]:
        return {
            "basic": {
                "name": community.name,
                "description": community.description,
                "address": community.address,
                "status": community.status.value,
            },
            "pickupSchedule": community.pickup_schedule,
            "settings": community.settings,
            "contactInfo": community.contact_info,
        }

    async def get_community_settings(self, db: AsyncSession, user: User, community_id: str) -> Dict[str, Any]:
        return self._community_settings(await self._community_for(db, user, community_id))

    async def update_community_settings(
        self, db: AsyncSession, user: User, community_id: str, data: CommunitySettingsUpdate
    ) -> Dict[str, Any]:
        community = await self._community_for(db, user, community_id)
        if data.settings is not None:
            community.settings = deep_merge(community.settings or {}, data.settings.model_dump(by_alias=True, exclude_none=True))
        if data.pickup_schedule is not None:
            community.pickup_schedule = deep_merge(
                community.pickup_schedule or {}, data.pickup_schedule.model_dump(by_alias=True, exclude_none=True)
            )
        if data.contact_info is not None:
            community.contact_info = deep_merge(
                community.contact_info or {}, data.contact_info.model_dump(by_alias=True, exclude_none=True)
            )
        await db.commit()
        await db.refresh(community)
        return self._community_settings(community)

    # ==================== APP INFO ====================

    def app_info(self) -> Dict[str, Any]:
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "demoMode": settings.is_demo_mode,
            "features": [
                "Smart waste scheduling",
                "Community management",
                "Issue tracking",
                "Analytics and reporting",
                "Environmental impact tracking",
            ],
            "supportContact": {
                "email": "support@ecowasteconnect.com",
                "phone": "+1-800-ECO-WASTE",
            },
        }


settings_service = SettingsService()
