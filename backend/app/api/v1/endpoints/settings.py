from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin, get_current_user
from app.schemas.common import success_response
from app.schemas.settings import CommunitySettingsUpdate, SystemSettingsUpdate, UserSettingsUpdate
from app.services.settings_service import settings_service

router = APIRouter()


@router.get("/user")
async def get_user_settings(
    current_user: User = Depends(get_current_user)
):
    return success_response({"settings": settings_service.get_user_settings(current_user)})


@router.put("/user")
async def update_user_settings(
    settings_data: UserSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await settings_service.update_user_settings(db, current_user, settings_data)
    return success_response({"settings": updated}, "Settings updated successfully")


@router.get("/system")
async def get_system_settings(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return success_response({"settings": await settings_service.get_system_settings(db)})


@router.put("/system")
async def update_system_settings(
    settings_data: SystemSettingsUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    updated = await settings_service.update_system_settings(db, current_user, settings_data)
    return success_response({"settings": updated}, "System settings updated successfully")


@router.get("/community/{community_id}")
async def get_community_settings(
    community_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Admins, or the admin of this community"""
    data = await settings_service.get_community_settings(db, current_user, community_id)
    return success_response({"settings": data})


@router.put("/community/{community_id}")
async def update_community_settings(
    community_id: str,
    settings_data: CommunitySettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    data = await settings_service.update_community_settings(db, current_user, community_id, settings_data)
    return success_response({"settings": data}, "Community settings updated successfully")


@router.get("/app-info")
async def app_info():
    """Public application metadata"""
    return success_response(settings_service.app_info())
