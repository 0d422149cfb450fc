"""
Community Service

Communities are referenced by plain ids from users, pickups, issues and
routes. Deleting a community removes only the community row; dependents keep
their now-dangling reference and resolve it to nothing at read time.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CommunityNotFoundError, DuplicateEntryError, UserNotFoundError
from app.core.logging_config import logger
from app.domain.roles import community_writable_fields, filter_updates
from app.models.community import Community, CommunityStatus, default_community_settings, default_pickup_schedule
from app.models.user import User
from app.schemas.common import address_to_json, dump
from app.schemas.community import CommunityCreate, CommunityResponse, CommunityUpdate
from app.services import access_control
from app.services.statistics import refresh_community_statistics

JSON_SECTIONS = ("address", "pickup_schedule", "contact_info", "settings")


def serialize_community(community: Community) -> Dict[str, Any]:
    return dump(CommunityResponse.model_validate(community))


class CommunityService:
    """Service for communities"""

    async def find_by_name(self, db: AsyncSession, name: str) -> Optional[Community]:
        """Case-insensitive name lookup"""
        result = await db.execute(
            select(Community).where(func.lower(Community.name) == name.strip().lower())
        )
        return result.scalars().first()

    async def find_or_create(self, db: AsyncSession, name: str, address: Optional[Dict[str, Any]] = None) -> Community:
        """Used at registration: join the named community, creating it when absent"""
        community = await self.find_by_name(db, name)
        if community:
            return community

        community = Community(
            name=name.strip(),
            address=address,
            pickup_schedule=default_pickup_schedule(),
            settings=default_community_settings(),
            status=CommunityStatus.ACTIVE,
        )
        db.add(community)
        await db.flush()
        logger.info(f"Created community {community.name} during registration")
        return community

    async def list_communities(self, db: AsyncSession, user: User) -> List[Community]:
        result = await db.execute(
            select(Community)
            .where(*access_control.community_scope(user))
            .order_by(Community.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_community(self, db: AsyncSession, user: User, community_id: str) -> Community:
        access_control.ensure_valid_id(community_id)
        community = await db.get(Community, community_id)
        if not community:
            raise CommunityNotFoundError(community_id)
        access_control.ensure(access_control.can_view_community(user, community.id))
        return community

    async def _check_admin(self, db: AsyncSession, admin_id: Optional[str]) -> None:
        if admin_id:
            access_control.ensure_valid_id(admin_id)
            if not await db.get(User, admin_id):
                raise UserNotFoundError(admin_id)

    async def create_community(self, db: AsyncSession, data: CommunityCreate) -> Community:
        if await self.find_by_name(db, data.name):
            raise DuplicateEntryError("Community with this name already exists", field="name")
        await self._check_admin(db, data.admin_id)

        community = Community(
            name=data.name,
            description=data.description,
            address=address_to_json(data.address),
            admin_id=data.admin_id,
            pickup_schedule=data.pickup_schedule.model_dump(by_alias=True, exclude_none=True) if data.pickup_schedule else default_pickup_schedule(),
            status=data.status or CommunityStatus.ACTIVE,
            contact_info=data.contact_info.model_dump(by_alias=True, exclude_none=True) if data.contact_info else None,
            settings={**default_community_settings(), **(data.settings.model_dump(by_alias=True, exclude_none=True) if data.settings else {})},
        )
        db.add(community)
        await db.commit()
        await db.refresh(community)

        logger.info(f"Created community {community.name} ({community.id})")
        return community

    async def update_community(self, db: AsyncSession, user: User, community_id: str, data: CommunityUpdate) -> Community:
        """Admins, or the community admin of this community"""
        access_control.ensure_valid_id(community_id)
        community = await db.get(Community, community_id)
        if not community:
            raise CommunityNotFoundError(community_id)
        access_control.ensure(access_control.can_manage_community(user, community.id))

        updates = filter_updates(data.model_dump(exclude_unset=True), community_writable_fields(user.role))

        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            if updates["name"].lower() != community.name.lower() and await self.find_by_name(db, updates["name"]):
                raise DuplicateEntryError("Community with this name already exists", field="name")
        if "admin_id" in updates:
            await self._check_admin(db, updates["admin_id"])

        for field, value in updates.items():
            if field in JSON_SECTIONS:
                value = self._merge_section(community, field, getattr(data, field))
            elif value is None and field in ("name", "status"):
                continue
            setattr(community, field, value)

        await db.commit()
        await db.refresh(community)
        return community

    def _merge_section(self, community: Community, field: str, model) -> Optional[Dict[str, Any]]:
        """Partial update of a JSON column: given keys replace, the rest stay"""
        if model is None:
            return getattr(community, field)
        incoming = model.model_dump(by_alias=True, exclude_none=True)
        return {**(getattr(community, field) or {}), **incoming}

    async def delete_community(self, db: AsyncSession, community_id: str) -> None:
        """Hard delete without cascading to users, pickups, issues or routes"""
        access_control.ensure_valid_id(community_id)
        community = await db.get(Community, community_id)
        if not community:
            raise CommunityNotFoundError(community_id)

        dependents = (await db.execute(
            select(func.count(User.id)).where(User.community_id == community.id)
        )).scalar() or 0

        await db.delete(community)
        await db.commit()

        if dependents:
            logger.warning(f"Deleted community {community_id} still referenced by {dependents} user(s)")
        else:
            logger.info(f"Deleted community {community_id}")

    async def refresh_statistics(self, db: AsyncSession, user: User, community_id: str) -> Community:
        access_control.ensure_valid_id(community_id)
        if not await db.get(Community, community_id):
            raise CommunityNotFoundError(community_id)
        access_control.ensure(access_control.can_manage_community(user, community_id))

        community = await refresh_community_statistics(db, community_id)
        await db.commit()
        await db.refresh(community)
        return community


community_service = CommunityService()
