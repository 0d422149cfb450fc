from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_admin_or_community_admin, get_current_admin, get_current_user
from app.schemas.common import success_response
from app.schemas.community import CommunityCreate, CommunityUpdate
from app.services.community_service import community_service, serialize_community

router = APIRouter()


@router.get("")
async def list_communities(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Admins see every community, everyone else only their own"""
    communities = await community_service.list_communities(db, current_user)
    return success_response({"communities": [serialize_community(c) for c in communities]})


@router.get("/{community_id}")
async def get_community(
    community_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    community = await community_service.get_community(db, current_user, community_id)
    return success_response({"community": serialize_community(community)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    community = await community_service.create_community(db, community_data)
    return success_response({"community": serialize_community(community)}, "Community created successfully")


@router.put("/{community_id}")
async def update_community(
    community_id: str,
    community_data: CommunityUpdate,
    current_user: User = Depends(get_admin_or_community_admin),
    db: AsyncSession = Depends(get_db)
):
    community = await community_service.update_community(db, current_user, community_id, community_data)
    return success_response({"community": serialize_community(community)}, "Community updated successfully")


@router.post("/{community_id}/statistics")
async def refresh_statistics(
    community_id: str,
    current_user: User = Depends(get_admin_or_community_admin),
    db: AsyncSession = Depends(get_db)
):
    """Recompute the stored statistics from live data"""
    community = await community_service.refresh_statistics(db, current_user, community_id)
    return success_response({"community": serialize_community(community)}, "Statistics updated successfully")


@router.delete("/{community_id}")
async def delete_community(
    community_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await community_service.delete_community(db, community_id)
    return success_response(message="Community deleted successfully")
