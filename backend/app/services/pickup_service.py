"""
Pickup Service - scheduling and the pickup lifecycle

Every state change goes through app.domain.pickup_lifecycle; this module
loads rows, applies the role rules, persists the resulting snapshot and
refreshes the statistics read-model.
"""
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    CommunityNotFoundError,
    PickupNotFoundError,
    RouteNotFoundError,
    StateConflictError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.domain import pickup_lifecycle as lifecycle
from app.domain.pickup_lifecycle import PickupPriority, PickupStatus
from app.domain.roles import UserRole, filter_updates, pickup_writable_fields
from app.models.community import Community
from app.models.notification import NotificationType
from app.models.pickup import Pickup
from app.models.route import Route
from app.models.user import User
from app.schemas.common import address_to_json, dump
from app.schemas.pickup import (
    PickupCancel,
    PickupComplete,
    PickupCreate,
    PickupFeedback,
    PickupFilters,
    PickupResponse,
    PickupUpdate,
)
from app.services import access_control
from app.services.notification_service import notification_service
from app.services.route_service import route_service
from app.services.statistics import pickup_statistics, refresh_community_statistics, refresh_route_metrics
from app.utils.pagination import paginate

# Columns that may not be cleared through an update
REQUIRED_FIELDS = frozenset({
    "scheduled_date", "time_slot", "waste_type", "address", "estimated_weight", "status", "priority",
})


def serialize_pickup(pickup: Pickup) -> Dict[str, Any]:
    return dump(PickupResponse.model_validate(pickup))


class PickupService:
    """Service for scheduling and completing pickups"""

    async def _refresh_read_models(self, db: AsyncSession, pickup: Pickup) -> None:
        await refresh_community_statistics(db, pickup.community_id)
        await refresh_route_metrics(db, pickup.route_id)

    # ==================== QUERIES ====================

    async def list_pickups(
        self,
        db: AsyncSession,
        user: User,
        filters: PickupFilters,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        """List pickups visible to the caller, newest scheduled date first"""
        conditions = access_control.pickup_scope(user)

        if filters.status:
            conditions.append(Pickup.status == filters.status)
        if filters.waste_type:
            conditions.append(Pickup.waste_type == filters.waste_type)
        if filters.start_date:
            conditions.append(Pickup.scheduled_date >= filters.start_date)
        if filters.end_date:
            conditions.append(Pickup.scheduled_date <= filters.end_date)

        # Community and user filters are admin-only; other roles are already scoped
        if access_control.is_admin(user):
            if filters.community:
                conditions.append(Pickup.community_id == access_control.ensure_valid_id(filters.community))
            if filters.user:
                conditions.append(Pickup.user_id == access_control.ensure_valid_id(filters.user))

        query = (
            select(Pickup)
            .where(*conditions)
            .order_by(Pickup.scheduled_date.desc(), Pickup.created_at.desc())
        )
        result = await paginate(db, query, page, limit)
        return {
            "pickups": [serialize_pickup(pickup) for pickup in result["items"]],
            "pagination": result["pagination"],
        }

    async def get_pickup(self, db: AsyncSession, user: User, pickup_id: str) -> Pickup:
        access_control.ensure_valid_id(pickup_id)
        pickup = await db.get(Pickup, pickup_id)
        if not pickup:
            raise PickupNotFoundError(pickup_id)
        access_control.ensure(access_control.can_view_pickup(user, pickup))
        return pickup

    async def get_statistics(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        return await pickup_statistics(db, access_control.pickup_scope(user))

    # ==================== LIFECYCLE ====================

    async def create_pickup(
        self,
        db: AsyncSession,
        user: User,
        data: PickupCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Pickup:
        """
        Schedule a pickup for the caller.

        The date must be in the future. A route is reserved when one runs that
        day for the waste type and community and still has capacity; otherwise
        the pickup is stored without a route.
        """
        lifecycle.ensure_future_date(data.scheduled_date, utcnow())

        community_id = user.community_id
        if not community_id and data.community_id:
            access_control.ensure_valid_id(data.community_id)
            if not await db.get(Community, data.community_id):
                raise CommunityNotFoundError(data.community_id)
            community_id = data.community_id
        if not community_id and user.role == UserRole.USER:
            raise ValidationError("User must belong to a community to schedule pickups", field="community")

        route = await route_service.assign_route(db, data.scheduled_date, data.waste_type, community_id)

        pickup = Pickup(
            user_id=user.id,
            community_id=community_id,
            route_id=route.id if route else None,
            scheduled_date=data.scheduled_date,
            time_slot=data.time_slot,
            waste_type=data.waste_type,
            address=address_to_json(data.address),
            notes=data.notes,
            estimated_weight=data.estimated_weight or 0,
            priority=data.priority or PickupPriority.NORMAL,
            status=PickupStatus.SCHEDULED,
            created_by="admin" if user.role == UserRole.ADMIN else "user",
            ip_address=ip_address,
            user_agent=user_agent[:512] if user_agent else None,
        )
        db.add(pickup)
        await self._refresh_read_models(db, pickup)
        await db.commit()
        await db.refresh(pickup)

        logger.log_lifecycle_event("pickup", str(pickup.id), None, PickupStatus.SCHEDULED.value,
                                   route_id=pickup.route_id)
        return pickup

    async def update_pickup(self, db: AsyncSession, user: User, pickup_id: str, data: PickupUpdate) -> Pickup:
        """Apply the fields the caller's role may write; other keys are ignored"""
        pickup = await self.get_pickup(db, user, pickup_id)
        updates = filter_updates(data.model_dump(exclude_unset=True), pickup_writable_fields(user.role))
        updates = {
            key: value for key, value in updates.items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        now = utcnow()
        previous_status = PickupStatus(pickup.status)

        if "scheduled_date" in updates:
            lifecycle.ensure_reschedulable(pickup.snapshot(), updates["scheduled_date"], now)

        if "status" in updates:
            pickup.apply(lifecycle.transition(pickup.snapshot(), updates.pop("status"), now))

        old_date = pickup.scheduled_date
        new_date = updates.get("scheduled_date", old_date)
        day_changed = new_date.date() != old_date.date()

        if "route_id" in updates:
            route_id = updates.pop("route_id")
            if route_id != pickup.route_id or day_changed:
                if route_id:
                    access_control.ensure_valid_id(route_id)
                    route = await db.get(Route, route_id)
                    if not route:
                        raise RouteNotFoundError(route_id)
                    await route_service.reserve(db, route, new_date)
                await route_service.release(db, pickup.route_id, old_date)
            pickup.route_id = route_id
        elif day_changed and pickup.route_id:
            moved = await route_service.move_reservation(
                db, pickup.route_id, old_date, new_date,
                updates.get("waste_type") or pickup.waste_type, pickup.community_id,
            )
            pickup.route_id = moved.id if moved else None

        if "address" in updates:
            updates["address"] = address_to_json(data.address)

        for field, value in updates.items():
            setattr(pickup, field, value)

        await self._refresh_read_models(db, pickup)
        await db.commit()
        await db.refresh(pickup)

        if pickup.status != previous_status:
            logger.log_lifecycle_event("pickup", str(pickup.id), previous_status.value,
                                       PickupStatus(pickup.status).value, actor=str(user.id))
        return pickup

    async def complete_pickup(self, db: AsyncSession, user: User, pickup_id: str, data: PickupComplete) -> Pickup:
        access_control.ensure_valid_id(pickup_id)
        pickup = await db.get(Pickup, pickup_id)
        if not pickup:
            raise PickupNotFoundError(pickup_id)
        if not access_control.can_complete_pickup(user, pickup):
            raise AuthorizationError("Only an admin or the assigned driver can complete this pickup")
        if data.driver_id:
            access_control.ensure_valid_id(data.driver_id)

        previous_status = PickupStatus(pickup.status)
        pickup.apply(lifecycle.complete(
            pickup.snapshot(),
            utcnow(),
            driver_id=data.driver_id or pickup.driver_id or user.id,
            vehicle=data.vehicle,
            actual_weight=data.actual_weight,
            notes=data.notes,
        ))
        notification_service.notify(
            db, pickup.user_id, "Pickup Completed",
            f"Your {pickup.waste_type.value} pickup has been completed.", NotificationType.SUCCESS,
        )

        await self._refresh_read_models(db, pickup)
        await db.commit()
        await db.refresh(pickup)

        logger.log_lifecycle_event("pickup", str(pickup.id), previous_status.value,
                                   PickupStatus.COMPLETED.value, actor=str(user.id))
        return pickup

    async def cancel_pickup(self, db: AsyncSession, user: User, pickup_id: str, data: PickupCancel) -> Pickup:
        pickup = await self.get_pickup(db, user, pickup_id)
        return await self._cancel(db, user, pickup, data.reason)

    async def _cancel(self, db: AsyncSession, user: User, pickup: Pickup, reason: str) -> Pickup:
        if not (access_control.is_admin(user) or pickup.user_id == user.id):
            raise AuthorizationError("Only the owner or an admin can cancel this pickup")

        previous_status = PickupStatus(pickup.status)
        pickup.apply(lifecycle.cancel(pickup.snapshot(), reason, utcnow()))

        await self._refresh_read_models(db, pickup)
        await db.commit()
        await db.refresh(pickup)

        logger.log_lifecycle_event("pickup", str(pickup.id), previous_status.value,
                                   PickupStatus.CANCELLED.value, reason=reason)
        return pickup

    async def delete_pickup(self, db: AsyncSession, user: User, pickup_id: str) -> Tuple[str, Optional[Pickup]]:
        """
        Active pickups are cancelled rather than removed. Finished ones can
        only be deleted by an admin.

        Returns ("cancelled", pickup) or ("deleted", None).
        """
        pickup = await self.get_pickup(db, user, pickup_id)

        if PickupStatus(pickup.status) in lifecycle.ACTIVE_STATUSES:
            return "cancelled", await self._cancel(db, user, pickup, "Cancelled by user")

        if not access_control.is_admin(user):
            raise StateConflictError("Cannot delete completed pickup", current_state=PickupStatus(pickup.status).value)

        community_id, route_id = pickup.community_id, pickup.route_id
        await db.delete(pickup)
        await refresh_community_statistics(db, community_id)
        await refresh_route_metrics(db, route_id)
        await db.commit()

        logger.info(f"Deleted pickup {pickup_id}")
        return "deleted", None

    async def add_feedback(self, db: AsyncSession, user: User, pickup_id: str, data: PickupFeedback) -> Pickup:
        pickup = await self.get_pickup(db, user, pickup_id)
        if pickup.user_id != user.id:
            raise AuthorizationError("Only the owner can rate this pickup")
        if PickupStatus(pickup.status) != PickupStatus.COMPLETED:
            raise StateConflictError("Feedback can only be given on completed pickups",
                                     current_state=PickupStatus(pickup.status).value)

        pickup.feedback = {
            "rating": data.rating,
            "comment": data.comment,
            "submittedAt": utcnow().isoformat(),
        }
        await db.commit()
        await db.refresh(pickup)
        return pickup


pickup_service = PickupService()
