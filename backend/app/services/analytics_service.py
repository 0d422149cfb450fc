"""
Analytics Service

Dashboard figures computed from stored pickups, issues and the community
statistics read-model. Admins see the whole system; everyone else is scoped
to their community (or to their own records when they have none).

Weights are in kilograms. Monthly series are bucketed in Python so the same
code runs on SQLite and PostgreSQL.
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import AuthorizationError, ReportNotFoundError
from app.core.logging_config import logger
from app.core.types import utcnow
from app.domain.issue_lifecycle import IssueStatus, resolution_time_hours
from app.domain.pickup_lifecycle import PickupStatus, WasteType
from app.models.community import Community
from app.models.issue import Issue
from app.models.pickup import Pickup
from app.models.report import Report
from app.models.user import User
from app.schemas.analytics import ReportRequest, ReportResponse
from app.schemas.common import dump
from app.services import access_control
from app.services.statistics import (
    community_overall_statistics,
    issue_statistics,
    issues_by_type,
    pickup_statistics,
    user_statistics,
)

# Streams that stay out of landfill
DIVERTED_TYPES = (WasteType.RECYCLABLE, WasteType.ORGANIC, WasteType.ELECTRONIC)

# Conversion factors per kg diverted
CO2_KG_PER_KG = 0.9
ENERGY_KWH_PER_KG = 4.0
WATER_GALLONS_PER_KG = 7.0
# One tree absorbs roughly 60 kg CO2 a year
CO2_KG_PER_TREE = 60.0

REPORT_CATALOG = [
    {
        "id": "pickup_summary",
        "name": "Monthly Pickup Summary",
        "description": "Complete summary of pickup activities for the month",
    },
    {
        "id": "waste_analysis",
        "name": "Waste Volume Analysis",
        "description": "Detailed analysis of waste volumes by type and community",
    },
    {
        "id": "issue_report",
        "name": "Issue Resolution Report",
        "description": "Summary of reported issues and resolution statistics",
    },
    {
        "id": "environmental_report",
        "name": "Environmental Impact Report",
        "description": "Environmental benefits and carbon footprint reduction",
    },
]


def _month_keys(months: int, now: datetime) -> List[str]:
    keys = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _month_label(key: str) -> str:
    return datetime.strptime(key, "%Y-%m").strftime("%b %Y")


def _window_start(months: int, now: datetime) -> datetime:
    first = _month_keys(months, now)[0]
    return datetime.strptime(first, "%Y-%m")


def _weight(pickup_row) -> float:
    actual, estimated = pickup_row
    return float(actual if actual is not None else (estimated or 0))


def environmental_impact(diverted_kg: float) -> Dict[str, Any]:
    co2_kg = diverted_kg * CO2_KG_PER_KG
    return {
        "co2Saved": round(co2_kg / 1000, 2),
        "treesEquivalent": round(co2_kg / CO2_KG_PER_TREE),
        "landfillDiverted": round(diverted_kg / 1000, 2),
        "energySaved": round(diverted_kg * ENERGY_KWH_PER_KG),
        "waterSaved": round(diverted_kg * WATER_GALLONS_PER_KG),
    }


class AnalyticsService:
    """Service for dashboard analytics and reports"""

    def _pickup_scope(self, user: User, community_id: Optional[str] = None) -> List[ColumnElement]:
        if access_control.is_admin(user):
            return [Pickup.community_id == community_id] if community_id else []
        if user.community_id:
            return [Pickup.community_id == user.community_id]
        return [Pickup.user_id == user.id]

    def _issue_scope(self, user: User, community_id: Optional[str] = None) -> List[ColumnElement]:
        if access_control.is_admin(user):
            return [Issue.community_id == community_id] if community_id else []
        if user.community_id:
            return [Issue.community_id == user.community_id]
        return [Issue.reporter_id == user.id]

    async def _completed_weights(
        self, db: AsyncSession, conditions: Sequence[ColumnElement], since: Optional[datetime] = None
    ):
        query = select(Pickup.completed_at, Pickup.waste_type, Pickup.actual_weight, Pickup.estimated_weight).where(
            Pickup.status == PickupStatus.COMPLETED, *conditions
        )
        if since is not None:
            query = query.where(Pickup.completed_at >= since)
        return (await db.execute(query)).all()

    # ==================== OVERVIEW ====================

    async def overview(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        now = utcnow()
        month_ago = now - timedelta(days=30)

        if access_control.is_admin(user):
            communities = await community_overall_statistics(db)
            users = await user_statistics(db)
            pickups = await pickup_statistics(db)
            issues = await issue_statistics(db)

            growth = {}
            for key, model in (("communities", Community), ("users", User), ("pickups", Pickup)):
                growth[key] = (await db.execute(
                    select(func.count(model.id)).where(model.created_at >= month_ago)
                )).scalar() or 0

            top = (await db.execute(
                select(Community).order_by(Community.waste_collected.desc()).limit(3)
            )).scalars().all()

            return {
                "totalCommunities": communities["totalCommunities"],
                "totalUsers": users["totalUsers"],
                "totalPickups": pickups["totalPickups"],
                "totalIssues": issues["totalIssues"],
                "monthlyGrowth": growth,
                "wasteCollection": {
                    "totalTons": round(pickups["totalWeight"] / 1000, 2),
                    "recyclingRate": communities["averageRecyclingRate"],
                },
                "efficiency": {
                    "pickupCompletionRate": pickups["efficiency"],
                    "customerSatisfaction": pickups["averageRating"],
                    "issueResolutionRate": issues["resolutionRate"],
                },
                "topCommunities": [
                    {
                        "id": str(c.id),
                        "name": c.name,
                        "wasteCollected": c.waste_collected,
                        "recyclingRate": c.recycling_rate,
                        "efficiency": c.efficiency,
                    }
                    for c in top
                ],
            }

        community = await db.get(Community, user.community_id) if user.community_id else None
        scope = self._pickup_scope(user)
        pickups = await pickup_statistics(db, scope)
        issues = await issue_statistics(db, self._issue_scope(user))
        monthly = (await db.execute(
            select(func.count(Pickup.id)).where(*scope, Pickup.created_at >= month_ago)
        )).scalar() or 0

        personal = [(a, e) for _, _, a, e in await self._completed_weights(db, [Pickup.user_id == user.id])]
        upcoming = (await db.execute(
            select(Pickup)
            .where(Pickup.user_id == user.id, Pickup.status == PickupStatus.SCHEDULED, Pickup.scheduled_date >= now)
            .order_by(Pickup.scheduled_date.asc())
            .limit(3)
        )).scalars().all()

        return {
            "communityName": community.name if community else None,
            "totalPickups": pickups["totalPickups"],
            "totalIssues": issues["totalIssues"],
            "monthlyPickups": monthly,
            "wasteCollection": {
                "personalTons": round(sum(_weight(row) for row in personal) / 1000, 3),
                "recyclingRate": community.recycling_rate if community else 0,
            },
            "upcomingPickups": [
                {
                    "id": str(p.id),
                    "type": p.waste_type.value,
                    "date": p.scheduled_date.date().isoformat(),
                    "timeSlot": p.time_slot.value,
                }
                for p in upcoming
            ],
        }

    # ==================== TRENDS ====================

    async def waste_trends(
        self, db: AsyncSession, user: User, months: int = 6, community_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Completed weight per month and waste type"""
        now = utcnow()
        keys = _month_keys(months, now)
        buckets: Dict[str, Dict[str, float]] = {key: defaultdict(float) for key in keys}

        rows = await self._completed_weights(db, self._pickup_scope(user, community_id), _window_start(months, now))
        for completed_at, waste_type, actual, estimated in rows:
            key = completed_at.strftime("%Y-%m")
            if key in buckets:
                buckets[key][waste_type.value] += _weight((actual, estimated))

        data = []
        for key in keys:
            entry = {"month": _month_label(key)}
            entry.update({w.value: round(buckets[key].get(w.value, 0), 2) for w in WasteType})
            entry["total"] = round(sum(buckets[key].values()), 2)
            data.append(entry)

        trends = {}
        for series in [w.value for w in WasteType] + ["total"]:
            first, last = data[0][series], data[-1][series]
            change = round((last - first) / first * 100, 1) if first else 0
            trends[series] = {"change": change, "trend": "up" if last > first else "down" if last < first else "flat"}

        return {"period": f"{months}months", "data": data, "trends": trends}

    async def pickup_stats(self, db: AsyncSession, user: User, months: int = 6) -> Dict[str, Any]:
        scope = self._pickup_scope(user)
        stats = await pickup_statistics(db, scope)

        by_type_rows = (await db.execute(
            select(Pickup.waste_type, func.count(Pickup.id)).where(*scope).group_by(Pickup.waste_type)
        )).all()
        total = sum(count for _, count in by_type_rows)
        by_type = [
            {
                "type": waste_type.value,
                "pickups": count,
                "percentage": round(count / total * 100, 1) if total else 0,
            }
            for waste_type, count in sorted(by_type_rows, key=lambda row: -row[1])
        ]

        now = utcnow()
        keys = _month_keys(months, now)
        monthly = {key: {"scheduled": 0, "completed": 0} for key in keys}
        rows = (await db.execute(
            select(Pickup.scheduled_date, Pickup.status)
            .where(*scope, Pickup.scheduled_date >= _window_start(months, now))
        )).all()
        for scheduled_date, status in rows:
            key = scheduled_date.strftime("%Y-%m")
            if key in monthly:
                monthly[key]["scheduled"] += 1
                if status == PickupStatus.COMPLETED:
                    monthly[key]["completed"] += 1

        return {
            "overview": stats,
            "byWasteType": by_type,
            "monthlyCompletion": [
                {
                    "month": _month_label(key),
                    **monthly[key],
                    "completionRate": round(monthly[key]["completed"] / monthly[key]["scheduled"] * 100, 1)
                    if monthly[key]["scheduled"] else 0,
                }
                for key in keys
            ],
        }

    async def issue_analytics(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        scope = self._issue_scope(user)
        stats = await issue_statistics(db, scope)
        by_type = await issues_by_type(db, scope)
        total = stats["totalIssues"]
        for entry in by_type:
            entry["percentage"] = round(entry["count"] / total * 100, 1) if total else 0

        by_priority = dict((await db.execute(
            select(Issue.priority, func.count(Issue.id)).where(*scope).group_by(Issue.priority)
        )).all())

        resolved = (await db.execute(
            select(Issue.created_at, Issue.resolved_at).where(*scope, Issue.resolved_at.is_not(None))
        )).all()
        hours = [resolution_time_hours(created, done) for created, done in resolved]

        return {
            "overview": stats,
            "byType": by_type,
            "byPriority": {priority.value: count for priority, count in by_priority.items()},
            "resolutionRate": stats["resolutionRate"],
            "averageResolutionHours": round(sum(hours) / len(hours), 1) if hours else None,
            "openIssues": total - stats["resolvedIssues"] - stats["closedIssues"] - stats["rejectedIssues"],
        }

    async def environmental(self, db: AsyncSession, user: User, months: int = 6) -> Dict[str, Any]:
        scope = self._pickup_scope(user) + [Pickup.waste_type.in_(DIVERTED_TYPES)]
        rows = await self._completed_weights(db, scope)
        diverted = sum(_weight((actual, estimated)) for _, _, actual, estimated in rows)

        now = utcnow()
        keys = _month_keys(months, now)
        monthly: Dict[str, float] = {key: 0.0 for key in keys}
        for completed_at, _, actual, estimated in rows:
            key = completed_at.strftime("%Y-%m")
            if key in monthly:
                monthly[key] += _weight((actual, estimated))

        result = environmental_impact(diverted)
        result["monthlyImpact"] = [
            {"month": _month_label(key), **environmental_impact(monthly[key])} for key in keys
        ]
        result["communityRanking"] = None if access_control.is_admin(user) else await self._ranking(db, user)
        return result

    async def _ranking(self, db: AsyncSession, user: User) -> Optional[Dict[str, Any]]:
        if not user.community_id:
            return None
        ordered = (await db.execute(
            select(Community.id).order_by(Community.waste_collected.desc(), Community.name.asc())
        )).scalars().all()
        if user.community_id not in ordered:
            return None
        position = ordered.index(user.community_id) + 1
        return {
            "position": position,
            "totalCommunities": len(ordered),
            "percentile": round((len(ordered) - position + 1) / len(ordered) * 100, 1),
        }

    # ==================== REPORTS ====================

    def list_reports(self) -> List[Dict[str, Any]]:
        return [dict(entry, type=entry["id"], available=True) for entry in REPORT_CATALOG]

    async def generate_report(self, db: AsyncSession, user: User, data: ReportRequest) -> Report:
        community_id = data.community_id if access_control.is_admin(user) else user.community_id
        if community_id:
            access_control.ensure_valid_id(community_id)

        pickup_scope = self._pickup_scope(user, community_id)
        issue_scope = self._issue_scope(user, community_id)
        if data.start_date:
            pickup_scope.append(Pickup.scheduled_date >= data.start_date)
            issue_scope.append(Issue.created_at >= data.start_date)
        if data.end_date:
            pickup_scope.append(Pickup.scheduled_date <= data.end_date)
            issue_scope.append(Issue.created_at <= data.end_date)

        if data.report_type == "pickup_summary":
            summary = await pickup_statistics(db, pickup_scope)
        elif data.report_type == "waste_analysis":
            rows = await self._completed_weights(db, pickup_scope)
            by_type: Dict[str, float] = defaultdict(float)
            for _, waste_type, actual, estimated in rows:
                by_type[waste_type.value] += _weight((actual, estimated))
            summary = {
                "byWasteType": {w.value: round(by_type.get(w.value, 0), 2) for w in WasteType},
                "totalWeight": round(sum(by_type.values()), 2),
            }
        elif data.report_type == "issue_report":
            summary = await issue_statistics(db, issue_scope)
            summary["byType"] = await issues_by_type(db, issue_scope)
        else:
            rows = await self._completed_weights(db, pickup_scope + [Pickup.waste_type.in_(DIVERTED_TYPES)])
            summary = environmental_impact(sum(_weight((a, e)) for _, _, a, e in rows))

        now = utcnow()
        name = next(entry["name"] for entry in REPORT_CATALOG if entry["id"] == data.report_type)
        report = Report(
            name=f"{name} - {now:%Y-%m-%d}",
            type=data.report_type,
            start_date=data.start_date,
            end_date=data.end_date,
            community_id=community_id,
            generated_by=user.id,
            summary=summary,
        )
        db.add(report)
        await db.commit()
        await db.refresh(report)

        logger.info(f"Generated {data.report_type} report {report.id} for {user.email}")
        return report

    async def get_report(self, db: AsyncSession, user: User, report_id: str) -> Report:
        access_control.ensure_valid_id(report_id)
        report = await db.get(Report, report_id)
        if not report:
            raise ReportNotFoundError(report_id)
        if not (access_control.is_admin(user) or report.generated_by == user.id):
            raise AuthorizationError("Access denied")
        return report


def serialize_report(report: Report) -> Dict[str, Any]:
    return dump(ReportResponse.model_validate(report))


analytics_service = AnalyticsService()
