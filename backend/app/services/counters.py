"""
Atomic counters

Both counters follow the same two statements inside the caller's transaction:

    INSERT ... ON CONFLICT DO NOTHING          (make sure the row exists)
    UPDATE ... SET n = n + 1 ... RETURNING n   (take the next value)

The UPDATE is a single statement, so two concurrent callers can never be
handed the same value. Supported on SQLite and PostgreSQL.
"""
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.counter import IssueSequence, RouteDailyLoad


def _insert_for(db: AsyncSession):
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


async def next_issue_sequence(db: AsyncSession, day: date) -> int:
    """Next issue number for `day`, starting at 1"""
    insert = _insert_for(db)
    await db.execute(
        insert(IssueSequence)
        .values(day=day, last_value=0)
        .on_conflict_do_nothing(index_elements=["day"])
    )
    result = await db.execute(
        update(IssueSequence)
        .where(IssueSequence.day == day)
        .values(last_value=IssueSequence.last_value + 1)
        .returning(IssueSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one()


async def reserve_route_slot(db: AsyncSession, route_id: str, day: date, capacity: int) -> Optional[int]:
    """
    Take one pickup slot on a route for a day.

    Returns the new reservation count, or None when the route is already at
    `capacity` for that day.
    """
    insert = _insert_for(db)
    await db.execute(
        insert(RouteDailyLoad)
        .values(route_id=route_id, day=day, reserved=0)
        .on_conflict_do_nothing(index_elements=["route_id", "day"])
    )
    result = await db.execute(
        update(RouteDailyLoad)
        .where(
            RouteDailyLoad.route_id == route_id,
            RouteDailyLoad.day == day,
            RouteDailyLoad.reserved < capacity,
        )
        .values(reserved=RouteDailyLoad.reserved + 1)
        .returning(RouteDailyLoad.reserved)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def route_load(db: AsyncSession, route_id: str, day: date) -> int:
    result = await db.execute(
        select(RouteDailyLoad.reserved).where(RouteDailyLoad.route_id == route_id, RouteDailyLoad.day == day)
    )
    return result.scalar() or 0


async def release_route_slot(db: AsyncSession, route_id: str, day: date) -> None:
    """Give back one slot taken by reserve_route_slot; never drops below zero"""
    await db.execute(
        update(RouteDailyLoad)
        .where(
            RouteDailyLoad.route_id == route_id,
            RouteDailyLoad.day == day,
            RouteDailyLoad.reserved > 0,
        )
        .values(reserved=RouteDailyLoad.reserved - 1)
        .execution_options(synchronize_session=False)
    )
