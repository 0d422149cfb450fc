"""
Issues API

Reporting, triage and resolution of service issues, plus the per-issue
update log (comments).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.domain.issue_lifecycle import IssuePriority, IssueStatus, IssueType
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin, get_current_user
from app.schemas.common import dump, success_response
from app.schemas.issue import (
    IssueComment,
    IssueCreate,
    IssueFeedback,
    IssueFilters,
    IssueUpdate,
    IssueUpdateResponse,
    ResolutionInput,
)
from app.services.issue_service import issue_service, serialize_issue

router = APIRouter()


@router.get("")
async def list_issues(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    status: Optional[IssueStatus] = Query(None),
    type: Optional[IssueType] = Query(None),
    priority: Optional[IssuePriority] = Query(None),
    community: Optional[str] = Query(None, description="Community id (admin only)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = IssueFilters(status=status, type=type, priority=priority, community=community)
    result = await issue_service.list_issues(db, current_user, filters, page, limit)
    return success_response(result)


@router.get("/stats/overview")
async def issue_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await issue_service.get_statistics(db, current_user)
    by_type = stats.pop("byType")
    return success_response({"overview": stats, "byType": by_type})


@router.get("/{issue_id}")
async def get_issue(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Single issue with its update log"""
    issue = await issue_service.get_issue(db, current_user, issue_id)
    updates = await issue_service.get_updates(db, issue)
    return success_response({"issue": serialize_issue(issue, updates, current_user)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_issue(
    request: Request,
    issue_data: IssueCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_service.create_issue(
        db,
        current_user,
        issue_data,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return success_response({"issue": serialize_issue(issue, viewer=current_user)}, "Issue reported successfully")


@router.put("/{issue_id}")
async def update_issue(
    issue_id: str,
    issue_data: IssueUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_service.update_issue(db, current_user, issue_id, issue_data)
    updates = await issue_service.get_updates(db, issue)
    return success_response({"issue": serialize_issue(issue, updates, current_user)}, "Issue updated successfully")


@router.post("/{issue_id}/resolve")
async def resolve_issue(
    issue_id: str,
    resolution: ResolutionInput,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_service.resolve_issue(
        db,
        current_user,
        issue_id,
        resolution.solution,
        follow_up_required=resolution.follow_up_required,
        follow_up_date=resolution.follow_up_date,
    )
    updates = await issue_service.get_updates(db, issue)
    return success_response({"issue": serialize_issue(issue, updates, current_user)}, "Issue resolved successfully")


@router.post("/{issue_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    issue_id: str,
    comment: IssueComment,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Append a comment, optionally moving the status (admins only)"""
    update = await issue_service.add_comment(db, current_user, issue_id, comment)
    return success_response({"update": dump(IssueUpdateResponse.model_validate(update))}, "Comment added successfully")


@router.post("/{issue_id}/feedback")
async def issue_feedback(
    issue_id: str,
    feedback: IssueFeedback,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_service.add_feedback(db, current_user, issue_id, feedback)
    return success_response({"issue": serialize_issue(issue, viewer=current_user)}, "Feedback submitted successfully")


@router.delete("/{issue_id}")
async def delete_issue(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await issue_service.delete_issue(db, current_user, issue_id)
    return success_response(message="Issue deleted successfully")
