"""
Database Seed Data Module

Demo data loaded at startup when no DATABASE_URL is configured:
one community, an admin (admin@admin.com) and a resident (user@user.com),
both with password `password123`, plus a collection route.

Run against a configured database with: python -m app.db.seed_data
"""
import asyncio
from typing import Dict

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import AsyncSessionLocal, Base, init_db
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.domain.pickup_lifecycle import WasteType
from app.domain.roles import UserRole
from app.models.community import Community, CommunityStatus, default_community_settings, default_pickup_schedule
from app.models.route import Route, RouteStatus
from app.models.user import User, default_preferences
from app.services.statistics import refresh_community_statistics

DEMO_PASSWORD = "password123"

DEMO_COMMUNITY = {
    "name": "Green Valley",
    "description": "Demo community",
    "address": {
        "street": "100 Main Street",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
        "country": "USA",
    },
}

DEMO_USERS = [
    {"email": "admin@admin.com", "name": "Admin User", "role": UserRole.ADMIN},
    {"email": "user@user.com", "name": "Demo User", "role": UserRole.USER},
]

DEMO_ROUTE = {
    "name": "Green Valley Weekday Route",
    "schedule": {
        "days": ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"],
        "startTime": "08:00",
        "endTime": "16:00",
        "estimatedDuration": 480,
    },
    "vehicle": {"vehicleId": "GV-001", "type": "truck", "capacity": 5000, "plateNumber": "ECO-100"},
}


# ==================== Seed Steps ====================

async def seed_community(db: AsyncSession) -> Community:
    community = Community(
        **DEMO_COMMUNITY,
        pickup_schedule=default_pickup_schedule(),
        settings=default_community_settings(),
        status=CommunityStatus.ACTIVE,
    )
    db.add(community)
    await db.flush()
    return community


async def seed_users(db: AsyncSession, community: Community) -> Dict[str, User]:
    hashed = get_password_hash(DEMO_PASSWORD)
    users = {}
    for user_data in DEMO_USERS:
        user = User(
            email=user_data["email"],
            name=user_data["name"],
            role=user_data["role"],
            hashed_password=hashed,
            community_id=community.id,
            address=DEMO_COMMUNITY["address"],
            preferences=default_preferences(),
            is_active=True,
            is_email_verified=True,
        )
        db.add(user)
        users[user.email] = user
    await db.flush()
    community.admin_id = users["admin@admin.com"].id
    return users


async def seed_route(db: AsyncSession, community: Community, driver: User) -> Route:
    route = Route(
        **DEMO_ROUTE,
        description="Demo route serving every waste stream",
        community_ids=[str(community.id)],
        driver_id=driver.id,
        waste_types=[w.value for w in WasteType],
        waypoints=[],
        status=RouteStatus.ACTIVE,
    )
    db.add(route)
    await db.flush()
    return route


# ==================== Main Seed Function ====================

async def seed_demo_data(db: AsyncSession) -> bool:
    """Seed once; returns False when the demo accounts already exist"""
    existing = await db.execute(select(User.id).where(User.email == DEMO_USERS[0]["email"]))
    if existing.scalar_one_or_none():
        return False

    community = await seed_community(db)
    users = await seed_users(db, community)
    await seed_route(db, community, users["admin@admin.com"])
    await refresh_community_statistics(db, community.id)
    await db.commit()

    logger.info(f"Seeded demo community '{community.name}' with {len(users)} accounts")
    return True


async def seed_all():
    """Create tables and seed the demo data"""
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            await seed_demo_data(db)
        except Exception:
            await db.rollback()
            logger.error("Error seeding database", exc_info=True)
            raise


async def clear_all():
    """Clear all data from database"""
    async with AsyncSessionLocal() as db:
        for table in reversed(Base.metadata.sorted_tables):
            await db.execute(delete(table))
        await db.commit()
    logger.info("Cleared all tables")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())
