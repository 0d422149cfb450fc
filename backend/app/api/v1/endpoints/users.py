"""
Users Management API

Admin listing with filters and pagination, self-service profile access,
soft deletion (deactivation) and bulk actions.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.domain.roles import UserRole
from app.models.user import User
from app.modules.auth.dependencies import get_admin_or_community_admin, get_current_admin, get_current_user
from app.schemas.common import success_response
from app.schemas.user import BulkActionRequest, UserUpdate
from app.services.user_service import serialize_user, serialize_users, user_service

router = APIRouter()


@router.get("")
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    community: Optional[str] = Query(None, description="Filter by community id"),
    search: Optional[str] = Query(None, description="Search by name or email"),
    is_active: Optional[bool] = Query(None, alias="isActive", description="Filter by active status"),
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await user_service.list_users(db, page, limit, role, community, search, is_active)
    return success_response(result)


@router.get("/stats/overview")
async def user_stats(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Totals, five most recent users and role distribution"""
    return success_response(await user_service.get_overview(db))


@router.get("/community/{community_id}")
async def community_users(
    community_id: str,
    current_user: User = Depends(get_admin_or_community_admin),
    db: AsyncSession = Depends(get_db)
):
    users = await user_service.list_by_community(db, current_user, community_id)
    return success_response({"users": await serialize_users(db, users)})


@router.post("/bulk-action")
async def bulk_action(
    request_data: BulkActionRequest,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Activate, deactivate or delete several users at once.

    Delete is a soft delete, same as deactivate. The caller's own account
    may not be part of the selection.
    """
    modified = await user_service.bulk_action(db, current_user, request_data.action, request_data.user_ids)
    return success_response(
        {"modifiedCount": modified},
        f"Bulk {request_data.action} completed successfully",
    )


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, current_user, user_id)
    return success_response({"user": await serialize_user(db, user)})


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.update_user(db, current_user, user_id, user_data)
    return success_response({"user": await serialize_user(db, user)}, "User updated successfully")


@router.put("/{user_id}/activate")
async def activate_user(
    user_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.set_active(db, current_user, user_id, True)
    return success_response({"user": await serialize_user(db, user)}, "User activated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Soft delete: the account is deactivated, nothing is removed"""
    await user_service.set_active(db, current_user, user_id, False)
    return success_response(message="User deactivated successfully")
