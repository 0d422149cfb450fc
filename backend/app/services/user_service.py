"""
User Service - account administration

Deleting a user is a soft delete (deactivation). The community reference on
a user is resolved when serialising; a community that has since been
deleted shows up as `community: null` while `communityId` keeps the id.
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CommunityNotFoundError,
    DuplicateEntryError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.domain.roles import UserRole, filter_updates, user_writable_fields
from app.models.community import Community
from app.models.user import User
from app.schemas.common import address_to_json, dump
from app.schemas.user import CommunitySummary, UserResponse, UserUpdate
from app.services import access_control
from app.services.statistics import refresh_community_statistics, user_statistics
from app.utils.pagination import paginate


async def _communities_by_id(db: AsyncSession, ids: Iterable[Optional[str]]) -> Dict[str, Community]:
    wanted = {str(i) for i in ids if i}
    if not wanted:
        return {}
    result = await db.execute(select(Community).where(Community.id.in_(wanted)))
    return {str(c.id): c for c in result.scalars().all()}


def _serialize(user: User, communities: Dict[str, Community]) -> Dict[str, Any]:
    response = UserResponse.model_validate(user)
    community = communities.get(str(user.community_id)) if user.community_id else None
    response.community = CommunitySummary(
        id=str(community.id), name=community.name, status=community.status.value
    ) if community else None
    return dump(response)


async def serialize_user(db: AsyncSession, user: User) -> Dict[str, Any]:
    return _serialize(user, await _communities_by_id(db, [user.community_id]))


async def serialize_users(db: AsyncSession, users: List[User]) -> List[Dict[str, Any]]:
    communities = await _communities_by_id(db, (u.community_id for u in users))
    return [_serialize(user, communities) for user in users]


class UserService:
    """Service for user administration"""

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def list_users(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        role: Optional[UserRole] = None,
        community_id: Optional[str] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        conditions = []
        if role:
            conditions.append(User.role == role)
        if community_id:
            conditions.append(User.community_id == access_control.ensure_valid_id(community_id))
        if is_active is not None:
            conditions.append(User.is_active == is_active)
        if search:
            pattern = f"%{search.strip().lower()}%"
            conditions.append(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))

        query = select(User).where(*conditions).order_by(User.created_at.desc())
        result = await paginate(db, query, page, limit)
        return {
            "users": await serialize_users(db, result["items"]),
            "pagination": result["pagination"],
        }

    async def _load(self, db: AsyncSession, user_id: str) -> User:
        access_control.ensure_valid_id(user_id)
        user = await db.get(User, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def get_user(self, db: AsyncSession, actor: User, user_id: str) -> User:
        """Admins see anyone, everyone else only themselves"""
        access_control.ensure_valid_id(user_id)
        access_control.ensure(access_control.is_admin(actor) or actor.id == user_id)
        return await self._load(db, user_id)

    async def update_user(self, db: AsyncSession, actor: User, user_id: str, data: UserUpdate) -> User:
        user = await self.get_user(db, actor, user_id)
        updates = filter_updates(data.model_dump(exclude_unset=True), user_writable_fields(actor.role))
        previous_community, previous_active = user.community_id, user.is_active

        if updates.get("email") and updates["email"].lower() != user.email:
            email = updates["email"].lower()
            if await self.get_by_email(db, email):
                raise DuplicateEntryError("User with this email already exists", field="email")
            updates["email"] = email

        if updates.get("community_id"):
            access_control.ensure_valid_id(updates["community_id"])
            if not await db.get(Community, updates["community_id"]):
                raise CommunityNotFoundError(updates["community_id"])

        for field, value in updates.items():
            if field == "address":
                value = address_to_json(data.address)
            elif field == "preferences":
                if data.preferences is None:
                    continue
                value = {**(user.preferences or {}), **data.preferences.model_dump(by_alias=True, exclude_none=True)}
            elif value is None and field in ("name", "email", "role", "is_active"):
                continue
            setattr(user, field, value)

        if user.community_id != previous_community or user.is_active != previous_active:
            await refresh_community_statistics(db, previous_community)
            await refresh_community_statistics(db, user.community_id)

        await db.commit()
        await db.refresh(user)
        return user

    async def set_active(self, db: AsyncSession, actor: User, user_id: str, active: bool) -> User:
        """Soft delete / reactivate; admins cannot deactivate themselves"""
        user = await self._load(db, user_id)
        if not active and user.id == actor.id:
            raise ValidationError("You cannot deactivate your own account", field="id")

        user.is_active = active
        await refresh_community_statistics(db, user.community_id)
        await db.commit()
        await db.refresh(user)

        logger.info(f"User {user.email} {'activated' if active else 'deactivated'} by {actor.email}")
        return user

    async def bulk_action(self, db: AsyncSession, actor: User, action: str, user_ids: List[str]) -> int:
        """activate / deactivate / delete (soft) many users; returns the number changed"""
        ids = [access_control.ensure_valid_id(user_id) for user_id in dict.fromkeys(user_ids)]
        if actor.id in ids:
            raise ValidationError("You cannot perform bulk actions on your own account", field="userIds")

        active = action == "activate"
        affected = (await db.execute(
            select(User.community_id).where(User.id.in_(ids)).distinct()
        )).scalars().all()

        result = await db.execute(
            update(User)
            .where(User.id.in_(ids))
            .values(is_active=active)
            .execution_options(synchronize_session="fetch")
        )
        for community_id in affected:
            await refresh_community_statistics(db, community_id)
        await db.commit()

        logger.info(f"Bulk {action} on {result.rowcount} user(s) by {actor.email}")
        return result.rowcount

    async def get_overview(self, db: AsyncSession) -> Dict[str, Any]:
        stats = await user_statistics(db)

        recent = (await db.execute(
            select(User).order_by(User.created_at.desc()).limit(5)
        )).scalars().all()

        distribution = (await db.execute(
            select(User.role, func.count(User.id)).group_by(User.role)
        )).all()

        return {
            "overview": stats,
            "recentUsers": await serialize_users(db, list(recent)),
            "roleDistribution": [{"role": role.value, "count": count} for role, count in distribution],
        }

    async def list_by_community(self, db: AsyncSession, actor: User, community_id: str) -> List[User]:
        access_control.ensure_valid_id(community_id)
        access_control.ensure(access_control.can_manage_community(actor, community_id))
        result = await db.execute(
            select(User)
            .where(User.community_id == community_id, User.is_active.is_(True))
            .order_by(User.name.asc())
        )
        return list(result.scalars().all())


user_service = UserService()
