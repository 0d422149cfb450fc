"""
Statistics read-model

Aggregate queries for the dashboards, plus the refresh functions that keep
the denormalised counters on Community and Route in step with the rows they
summarise. Services call the refreshers synchronously right after the
mutation that changed the underlying data, inside the same transaction.
Sessions run without autoflush, so each refresher flushes first.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.types import utcnow
from app.domain.issue_lifecycle import IssuePriority, IssueStatus
from app.domain.pickup_lifecycle import PickupStatus, WasteType
from app.domain.roles import UserRole
from app.models.community import Community, CommunityStatus
from app.models.issue import Issue
from app.models.pickup import Pickup
from app.models.route import Route, RouteStatus
from app.models.user import User

logger = logging.getLogger(__name__)

RESOLVED_STATUSES = (IssueStatus.RESOLVED, IssueStatus.CLOSED)


def _percent(part: float, whole: float) -> int:
    return round(part / whole * 100) if whole else 0


def _count_when(condition: ColumnElement):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def pickup_weight():
    """Actual weight once weighed, the estimate before"""
    return func.coalesce(Pickup.actual_weight, Pickup.estimated_weight, 0)


# ==================== AGGREGATES ====================

async def pickup_statistics(db: AsyncSession, conditions: Sequence[ColumnElement] = ()) -> Dict[str, Any]:
    query = select(
        func.count(Pickup.id),
        _count_when(Pickup.status == PickupStatus.SCHEDULED),
        _count_when(Pickup.status == PickupStatus.IN_PROGRESS),
        _count_when(Pickup.status == PickupStatus.COMPLETED),
        _count_when(Pickup.status == PickupStatus.CANCELLED),
        _count_when(Pickup.status == PickupStatus.MISSED),
        func.coalesce(func.sum(pickup_weight()), 0),
        func.avg(Pickup.feedback["rating"].as_float()),
    ).where(*conditions)
    row = (await db.execute(query)).one()
    total, scheduled, in_progress, completed, cancelled, missed, weight, rating = row

    return {
        "totalPickups": total,
        "scheduledPickups": scheduled,
        "inProgressPickups": in_progress,
        "completedPickups": completed,
        "cancelledPickups": cancelled,
        "missedPickups": missed,
        "totalWeight": round(float(weight), 2),
        "averageRating": round(float(rating), 2) if rating is not None else 0,
        "efficiency": _percent(completed, total),
    }


async def issue_statistics(db: AsyncSession, conditions: Sequence[ColumnElement] = ()) -> Dict[str, Any]:
    query = select(
        func.count(Issue.id),
        _count_when(Issue.status == IssueStatus.NEW),
        _count_when(Issue.status == IssueStatus.ACKNOWLEDGED),
        _count_when(Issue.status == IssueStatus.IN_PROGRESS),
        _count_when(Issue.status == IssueStatus.RESOLVED),
        _count_when(Issue.status == IssueStatus.CLOSED),
        _count_when(Issue.status == IssueStatus.REJECTED),
        _count_when(Issue.priority.in_([IssuePriority.HIGH, IssuePriority.URGENT])),
        func.avg(Issue.feedback["rating"].as_float()),
    ).where(*conditions)
    row = (await db.execute(query)).one()
    total, new, acknowledged, in_progress, resolved, closed, rejected, high, rating = row

    return {
        "totalIssues": total,
        "newIssues": new,
        "acknowledgedIssues": acknowledged,
        "inProgressIssues": in_progress,
        "resolvedIssues": resolved,
        "closedIssues": closed,
        "rejectedIssues": rejected,
        "highPriorityIssues": high,
        "averageRating": round(float(rating), 2) if rating is not None else 0,
        "resolutionRate": _percent(resolved + closed, total),
    }


async def issues_by_type(db: AsyncSession, conditions: Sequence[ColumnElement] = ()) -> List[Dict[str, Any]]:
    query = (
        select(
            Issue.type,
            func.count(Issue.id),
            _count_when(Issue.status.in_(RESOLVED_STATUSES)),
        )
        .where(*conditions)
        .group_by(Issue.type)
        .order_by(func.count(Issue.id).desc())
    )
    rows = (await db.execute(query)).all()
    return [
        {
            "type": issue_type.value,
            "count": count,
            "resolved": resolved,
            "resolutionRate": _percent(resolved, count),
        }
        for issue_type, count, resolved in rows
    ]


async def user_statistics(db: AsyncSession, conditions: Sequence[ColumnElement] = ()) -> Dict[str, Any]:
    query = select(
        func.count(User.id),
        _count_when(User.is_active.is_(True)),
        _count_when(User.role == UserRole.ADMIN),
        _count_when(User.role == UserRole.COMMUNITY_ADMIN),
        _count_when(User.role == UserRole.USER),
    ).where(*conditions)
    total, active, admins, community_admins, users = (await db.execute(query)).one()
    return {
        "totalUsers": total,
        "activeUsers": active,
        "inactiveUsers": total - active,
        "adminUsers": admins,
        "communityAdmins": community_admins,
        "regularUsers": users,
    }


async def route_statistics(db: AsyncSession, conditions: Sequence[ColumnElement] = ()) -> Dict[str, Any]:
    query = select(
        func.count(Route.id),
        _count_when(Route.status == RouteStatus.ACTIVE),
        _count_when(Route.status == RouteStatus.MAINTENANCE),
        func.avg(Route.efficiency),
        func.coalesce(func.sum(Route.total_pickups), 0),
        func.coalesce(func.sum(Route.completed_pickups), 0),
    ).where(*conditions)
    total, active, maintenance, efficiency, pickups, completed = (await db.execute(query)).one()
    return {
        "totalRoutes": total,
        "activeRoutes": active,
        "maintenanceRoutes": maintenance,
        "averageEfficiency": round(float(efficiency), 1) if efficiency is not None else 0,
        "totalPickups": pickups,
        "completedPickups": completed,
    }


async def community_overall_statistics(db: AsyncSession) -> Dict[str, Any]:
    query = select(
        func.count(Community.id),
        _count_when(Community.status == CommunityStatus.ACTIVE),
        _count_when(Community.status == CommunityStatus.PENDING),
        func.coalesce(func.sum(Community.waste_collected), 0),
        func.avg(Community.recycling_rate),
        func.coalesce(func.sum(Community.issues_reported), 0),
        func.coalesce(func.sum(Community.issues_resolved), 0),
    )
    total, active, pending, waste, recycling, issues, resolved = (await db.execute(query)).one()
    return {
        "totalCommunities": total,
        "activeCommunities": active,
        "pendingCommunities": pending,
        "totalWasteCollected": round(float(waste), 2),
        "averageRecyclingRate": round(float(recycling), 1) if recycling is not None else 0,
        "totalIssues": issues,
        "resolvedIssues": resolved,
    }


# ==================== READ-MODEL REFRESH ====================

async def refresh_community_statistics(db: AsyncSession, community_id: Optional[str]) -> Optional[Community]:
    """Recompute the statistics columns of one community from its users, pickups and issues"""
    if not community_id:
        return None
    await db.flush()
    community = await db.get(Community, community_id)
    if community is None:
        return None

    users = (await db.execute(
        select(func.count(User.id), _count_when(User.is_active.is_(True)))
        .where(User.community_id == community_id)
    )).one()

    issues = (await db.execute(
        select(func.count(Issue.id), _count_when(Issue.status.in_(RESOLVED_STATUSES)))
        .where(Issue.community_id == community_id)
    )).one()

    waste = (await db.execute(
        select(
            func.coalesce(func.sum(pickup_weight()), 0),
            func.coalesce(func.sum(case((Pickup.waste_type == WasteType.RECYCLABLE, pickup_weight()), else_=0)), 0),
        ).where(Pickup.community_id == community_id, Pickup.status == PickupStatus.COMPLETED)
    )).one()

    total_weight, recyclable_weight = float(waste[0]), float(waste[1])

    community.total_users, community.active_users = users
    community.issues_reported, community.issues_resolved = issues
    community.waste_collected = round(total_weight, 2)
    community.recycling_rate = round(recyclable_weight / total_weight * 100, 1) if total_weight else 0
    community.statistics_updated_at = utcnow()

    logger.debug(f"Refreshed statistics for community {community_id}")
    return community


async def refresh_route_metrics(db: AsyncSession, route_id: Optional[str]) -> Optional[Route]:
    """Recompute pickup totals, efficiency and last run of one route"""
    if not route_id:
        return None
    await db.flush()
    route = await db.get(Route, route_id)
    if route is None:
        return None

    total, completed, last_run = (await db.execute(
        select(
            func.count(Pickup.id),
            _count_when(Pickup.status == PickupStatus.COMPLETED),
            func.max(Pickup.completed_at),
        ).where(Pickup.route_id == route_id)
    )).one()

    route.total_pickups = total
    route.completed_pickups = completed
    route.efficiency = round(completed / total * 100, 1) if total else 100
    route.last_run = last_run
    return route
