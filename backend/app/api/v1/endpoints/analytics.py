"""
Analytics API

Dashboard figures for admins (system wide) and for community members
(scoped to their community), plus stored report generation.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.analytics import ReportRequest
from app.schemas.common import success_response
from app.services.analytics_service import analytics_service, serialize_report

router = APIRouter()


@router.get("/overview")
async def overview(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await analytics_service.overview(db, current_user))


@router.get("/waste-trends")
async def waste_trends(
    months: int = Query(6, ge=1, le=24, description="Number of months, current month included"),
    community: Optional[str] = Query(None, description="Community id (admin only)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Completed weight (kg) per month and waste type"""
    return success_response(await analytics_service.waste_trends(db, current_user, months, community))


@router.get("/pickup-stats")
async def pickup_stats(
    months: int = Query(6, ge=1, le=24),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await analytics_service.pickup_stats(db, current_user, months))


@router.get("/issue-analytics")
async def issue_analytics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await analytics_service.issue_analytics(db, current_user))


@router.get("/environmental-impact")
async def environmental_impact(
    months: int = Query(6, ge=1, le=24),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await analytics_service.environmental(db, current_user, months))


@router.get("/reports")
async def list_reports(
    current_user: User = Depends(get_current_user)
):
    return success_response({"reports": analytics_service.list_reports()})


@router.post("/generate-report", status_code=status.HTTP_201_CREATED)
async def generate_report(
    report_request: ReportRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    report = await analytics_service.generate_report(db, current_user, report_request)
    return success_response(
        {"report": serialize_report(report), "downloadUrl": f"/analytics/download-report/{report.id}"},
        "Report generated successfully",
    )


@router.get("/download-report/{report_id}")
async def download_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    report = await analytics_service.get_report(db, current_user, report_id)
    return success_response({"report": serialize_report(report)})
