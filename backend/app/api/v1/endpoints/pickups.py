"""
Pickups API

Scheduling, completion and cancellation of waste pickups. Every handler is
role-scoped: users work with their own pickups, community admins with their
community's, admins with all of them.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.domain.pickup_lifecycle import PickupStatus, WasteType
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.common import success_response
from app.schemas.pickup import PickupCancel, PickupComplete, PickupCreate, PickupFeedback, PickupFilters, PickupUpdate
from app.services.pickup_service import pickup_service, serialize_pickup

router = APIRouter()


@router.get("")
async def list_pickups(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    status: Optional[PickupStatus] = Query(None),
    waste_type: Optional[WasteType] = Query(None, alias="wasteType"),
    community: Optional[str] = Query(None, description="Community id (admin only)"),
    user: Optional[str] = Query(None, description="User id (admin only)"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = PickupFilters(
        status=status,
        waste_type=waste_type,
        community=community,
        user=user,
        start_date=start_date,
        end_date=end_date,
    )
    result = await pickup_service.list_pickups(db, current_user, filters, page, limit)
    return success_response(result)


@router.get("/stats/overview")
async def pickup_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Status totals, weight, rating and efficiency within the caller's scope"""
    stats = await pickup_service.get_statistics(db, current_user)
    return success_response({"overview": stats})


@router.get("/{pickup_id}")
async def get_pickup(
    pickup_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pickup = await pickup_service.get_pickup(db, current_user, pickup_id)
    return success_response({"pickup": serialize_pickup(pickup)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_pickup(
    request: Request,
    pickup_data: PickupCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pickup = await pickup_service.create_pickup(
        db,
        current_user,
        pickup_data,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return success_response({"pickup": serialize_pickup(pickup)}, "Pickup scheduled successfully")


@router.put("/{pickup_id}")
async def update_pickup(
    pickup_id: str,
    pickup_data: PickupUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pickup = await pickup_service.update_pickup(db, current_user, pickup_id, pickup_data)
    return success_response({"pickup": serialize_pickup(pickup)}, "Pickup updated successfully")


@router.post("/{pickup_id}/complete")
async def complete_pickup(
    pickup_id: str,
    completion: Optional[PickupComplete] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a pickup completed (admin or the assigned driver)"""
    pickup = await pickup_service.complete_pickup(db, current_user, pickup_id, completion or PickupComplete())
    return success_response({"pickup": serialize_pickup(pickup)}, "Pickup completed successfully")


@router.post("/{pickup_id}/cancel")
async def cancel_pickup(
    pickup_id: str,
    cancellation: Optional[PickupCancel] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pickup = await pickup_service.cancel_pickup(db, current_user, pickup_id, cancellation or PickupCancel())
    return success_response({"pickup": serialize_pickup(pickup)}, "Pickup cancelled successfully")


@router.post("/{pickup_id}/feedback")
async def pickup_feedback(
    pickup_id: str,
    feedback: PickupFeedback,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    pickup = await pickup_service.add_feedback(db, current_user, pickup_id, feedback)
    return success_response({"pickup": serialize_pickup(pickup)}, "Feedback submitted successfully")


@router.delete("/{pickup_id}")
async def delete_pickup(
    pickup_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active pickups are cancelled; finished ones are removed (admin only)"""
    outcome, pickup = await pickup_service.delete_pickup(db, current_user, pickup_id)
    if outcome == "cancelled":
        return success_response({"pickup": serialize_pickup(pickup)}, "Pickup cancelled successfully")
    return success_response(message="Pickup deleted successfully")
