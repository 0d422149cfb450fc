"""
Collection Routes API

Admins maintain routes; other roles can read the routes serving their
community and look up which routes run on a given day.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.types import to_naive_utc
from app.domain.pickup_lifecycle import WasteType
from app.models.route import RouteStatus
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin, get_current_user
from app.schemas.common import success_response
from app.schemas.route import RouteCreate, RouteUpdate
from app.services.route_service import route_service, serialize_route

router = APIRouter()


@router.get("")
async def list_routes(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    status: Optional[RouteStatus] = Query(None),
    community: Optional[str] = Query(None, description="Community id (admin only)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await route_service.list_routes(db, current_user, page, limit, status, community)
    return success_response(result)


@router.get("/available")
async def available_routes(
    date: datetime = Query(..., description="Day of the pickup"),
    waste_type: WasteType = Query(..., alias="wasteType"),
    community: Optional[str] = Query(None, description="Community id"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active routes running that weekday for the waste type, with the slots left"""
    date = to_naive_utc(date)
    community_id = community or current_user.community_id
    routes = await route_service.find_available(db, date, waste_type, community_id)
    data = []
    for route in routes:
        entry = serialize_route(route)
        entry["availableSlots"] = await route_service.available_slots(db, route, date)
        data.append(entry)
    return success_response({"routes": data})


@router.get("/stats/overview")
async def route_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response({"overview": await route_service.get_statistics(db, current_user)})


@router.get("/{route_id}")
async def get_route(
    route_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    route = await route_service.get_route(db, current_user, route_id)
    return success_response({"route": serialize_route(route)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_route(
    route_data: RouteCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    route = await route_service.create_route(db, route_data)
    return success_response({"route": serialize_route(route)}, "Route created successfully")


@router.put("/{route_id}")
async def update_route(
    route_id: str,
    route_data: RouteUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    route = await route_service.update_route(db, current_user, route_id, route_data)
    return success_response({"route": serialize_route(route)}, "Route updated successfully")


@router.delete("/{route_id}")
async def delete_route(
    route_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await route_service.delete_route(db, current_user, route_id)
    return success_response(message="Route deleted successfully")
