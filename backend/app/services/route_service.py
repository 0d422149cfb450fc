"""
Route Service - collection routes and capacity reservation

Handles:
- Route CRUD (admin) and role-scoped listing
- Availability lookup for a date, waste type and community
- Atomic reservation of a route's daily pickup capacity
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CapacityExceededError,
    CommunityNotFoundError,
    RouteNotFoundError,
    UserNotFoundError,
)
from app.core.logging_config import logger
from app.domain.pickup_lifecycle import WasteType
from app.domain.schedule import route_serves, sort_waypoints, to_minutes, validate_route_schedule, weekday_name
from app.models.community import Community
from app.models.route import Route, RouteStatus, DEFAULT_MAX_PICKUPS_PER_DAY, DEFAULT_MAX_WEIGHT_PER_DAY
from app.models.user import User
from app.schemas.common import dump
from app.schemas.route import RouteCreate, RouteResponse, RouteUpdate
from app.services import access_control
from app.services.counters import release_route_slot, reserve_route_slot, route_load
from app.services.statistics import route_statistics
from app.utils.pagination import paginate


def serialize_route(route: Route) -> Dict[str, Any]:
    return dump(RouteResponse.model_validate(route))


class RouteService:
    """Service for managing collection routes"""

    # ==================== QUERIES ====================

    async def list_routes(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[RouteStatus] = None,
        community_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        conditions = access_control.route_scope(user)
        if status:
            conditions.append(Route.status == status)
        if community_id and access_control.is_admin(user):
            access_control.ensure_valid_id(community_id)
            conditions.append(access_control.route_serves_community(community_id))

        query = select(Route).where(*conditions).order_by(Route.name.asc())
        result = await paginate(db, query, page, limit)
        return {
            "routes": [serialize_route(route) for route in result["items"]],
            "pagination": result["pagination"],
        }

    async def get_route(self, db: AsyncSession, user: User, route_id: str) -> Route:
        access_control.ensure_valid_id(route_id)
        route = await db.get(Route, route_id)
        if not route:
            raise RouteNotFoundError(route_id)
        access_control.ensure(access_control.can_view_route(user, route))
        return route

    async def get_statistics(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        return await route_statistics(db, access_control.route_scope(user))

    async def available_slots(self, db: AsyncSession, route: Route, date: datetime) -> int:
        return max(0, route.max_pickups_per_day - await route_load(db, route.id, date.date()))

    async def find_available(
        self,
        db: AsyncSession,
        date: datetime,
        waste_type: WasteType,
        community_id: Optional[str] = None,
    ) -> List[Route]:
        """
        Active routes running on the weekday of `date` that accept the waste
        type and, when given, serve the community. Earliest start time first.
        """
        conditions = [Route.status == RouteStatus.ACTIVE]
        if community_id:
            conditions.append(access_control.route_serves_community(community_id))

        result = await db.execute(select(Route).where(*conditions))
        day = weekday_name(date)
        routes = [
            route for route in result.scalars().all()
            if route_serves(route.schedule, route.waste_types, route.community_ids,
                            day, WasteType(waste_type).value, community_id)
        ]
        return sorted(routes, key=lambda route: to_minutes(route.start_time))

    # ==================== RESERVATION ====================

    async def assign_route(
        self,
        db: AsyncSession,
        date: datetime,
        waste_type: WasteType,
        community_id: Optional[str] = None,
    ) -> Optional[Route]:
        """Reserve a slot on the first available route with capacity left; None if there is none"""
        for route in await self.find_available(db, date, waste_type, community_id):
            reserved = await reserve_route_slot(db, route.id, date.date(), route.max_pickups_per_day)
            if reserved is not None:
                logger.info(f"Reserved slot {reserved}/{route.max_pickups_per_day} on route {route.id} for {date.date()}")
                return route
        return None

    async def reserve(self, db: AsyncSession, route: Route, date: datetime) -> None:
        """Reserve a slot on a specific route or fail"""
        reserved = await reserve_route_slot(db, route.id, date.date(), route.max_pickups_per_day)
        if reserved is None:
            raise CapacityExceededError(str(route.id), date.date().isoformat())

    async def release(self, db: AsyncSession, route_id: Optional[str], date: datetime) -> None:
        if route_id:
            await release_route_slot(db, route_id, date.date())

    async def move_reservation(
        self,
        db: AsyncSession,
        route_id: Optional[str],
        old_date: datetime,
        new_date: datetime,
        waste_type: WasteType,
        community_id: Optional[str] = None,
    ) -> Optional[Route]:
        """
        Carry a booking over to a new day.

        The current route is kept when it is active, runs on the new weekday
        and has room; otherwise the first available route is taken, or None.
        The slot on the old day is given back either way.
        """
        moved = None
        route = await db.get(Route, route_id) if route_id else None
        if route is not None and route.status == RouteStatus.ACTIVE and route_serves(
            route.schedule, route.waste_types, route.community_ids,
            weekday_name(new_date), WasteType(waste_type).value, community_id,
        ):
            if await reserve_route_slot(db, route.id, new_date.date(), route.max_pickups_per_day) is not None:
                moved = route
        if moved is None:
            moved = await self.assign_route(db, new_date, waste_type, community_id)

        await self.release(db, route_id, old_date)
        if moved is None or str(moved.id) != str(route_id):
            logger.info(f"Booking moved from route {route_id} to {moved.id if moved else None} for {new_date.date()}")
        return moved

    # ==================== CRUD ====================

    async def _check_references(
        self, db: AsyncSession, community_ids: Optional[List[str]], driver_id: Optional[str]
    ) -> None:
        for community_id in community_ids or []:
            access_control.ensure_valid_id(community_id)
            if not await db.get(Community, community_id):
                raise CommunityNotFoundError(community_id)
        if driver_id:
            access_control.ensure_valid_id(driver_id)
            if not await db.get(User, driver_id):
                raise UserNotFoundError(driver_id)

    async def create_route(self, db: AsyncSession, data: RouteCreate) -> Route:
        await self._check_references(db, data.community_ids, data.driver_id)

        route = Route(
            name=data.name.strip(),
            description=data.description,
            community_ids=[str(c) for c in dict.fromkeys(data.community_ids)],
            driver_id=data.driver_id,
            vehicle=data.vehicle.model_dump(mode="json", by_alias=True, exclude_none=True) if data.vehicle else None,
            schedule=validate_route_schedule(data.schedule.model_dump(by_alias=True, exclude_none=True)),
            waste_types=[WasteType(w).value for w in data.waste_types],
            waypoints=sort_waypoints(w.model_dump(by_alias=True, exclude_none=True) for w in data.waypoints),
            status=data.status or RouteStatus.ACTIVE,
            max_pickups_per_day=data.max_pickups_per_day or DEFAULT_MAX_PICKUPS_PER_DAY,
            max_weight_per_day=data.max_weight_per_day or DEFAULT_MAX_WEIGHT_PER_DAY,
        )
        db.add(route)
        await db.commit()
        await db.refresh(route)

        logger.info(f"Created route {route.name} ({route.id})")
        return route

    async def update_route(self, db: AsyncSession, user: User, route_id: str, data: RouteUpdate) -> Route:
        route = await self.get_route(db, user, route_id)
        updates = data.model_dump(exclude_unset=True)
        await self._check_references(db, updates.get("community_ids"), updates.get("driver_id"))

        if "community_ids" in updates and data.community_ids:
            route.community_ids = [str(c) for c in dict.fromkeys(data.community_ids)]
        if "driver_id" in updates:
            route.driver_id = data.driver_id
        if "vehicle" in updates:
            route.vehicle = data.vehicle.model_dump(mode="json", by_alias=True, exclude_none=True) if data.vehicle else None
        if data.schedule is not None:
            route.schedule = validate_route_schedule(data.schedule.model_dump(by_alias=True, exclude_none=True))
        if data.waste_types:
            route.waste_types = [WasteType(w).value for w in data.waste_types]
        if data.waypoints is not None:
            route.waypoints = sort_waypoints(w.model_dump(by_alias=True, exclude_none=True) for w in data.waypoints)

        for field in ("name", "description", "status", "max_pickups_per_day", "max_weight_per_day"):
            if field in updates and (updates[field] is not None or field == "description"):
                setattr(route, field, updates[field])

        await db.commit()
        await db.refresh(route)
        return route

    async def delete_route(self, db: AsyncSession, user: User, route_id: str) -> None:
        route = await self.get_route(db, user, route_id)
        await db.delete(route)
        await db.commit()
        logger.info(f"Deleted route {route_id}")


route_service = RouteService()
