"""
Issue Service - reporting and the issue lifecycle

Handles:
- Issue creation with atomically allocated ISSyymmddNNN identifiers
- Admin triage (status, priority, assignment, resolution)
- Reporter edits while an issue is still new
- The append-only update log and its internal entries
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    IssueNotFoundError,
    StateConflictError,
    UserNotFoundError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.domain import issue_lifecycle as lifecycle
from app.domain.issue_lifecycle import IssueCategory, IssuePriority, IssueStatus, UpdateEntry
from app.domain.roles import ISSUE_OWNER_FIELDS, filter_updates
from app.models.issue import Issue, IssueUpdate
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas.common import dump
from app.schemas.issue import (
    IssueComment,
    IssueCreate,
    IssueFeedback,
    IssueFilters,
    IssueResponse,
    IssueUpdate as IssueUpdateRequest,
    IssueUpdateResponse,
)
from app.services import access_control
from app.services.counters import next_issue_sequence
from app.services.notification_service import notification_service
from app.services.statistics import issue_statistics, issues_by_type, refresh_community_statistics
from app.utils.pagination import paginate


def serialize_issue(issue: Issue, updates: Iterable[IssueUpdate] = (), viewer: Optional[User] = None) -> Dict[str, Any]:
    """Issue with its update log; internal entries only reach admins"""
    show_internal = viewer is not None and access_control.is_admin(viewer)
    response = IssueResponse.model_validate(issue)
    response.updates = [
        IssueUpdateResponse.model_validate(update)
        for update in updates
        if show_internal or not update.is_internal
    ]
    return dump(response)


class IssueService:
    """Service for reported issues"""

    async def _load(self, db: AsyncSession, issue_id: str) -> Issue:
        access_control.ensure_valid_id(issue_id)
        issue = await db.get(Issue, issue_id)
        if not issue:
            raise IssueNotFoundError(issue_id)
        return issue

    async def get_updates(self, db: AsyncSession, issue: Issue) -> List[IssueUpdate]:
        result = await db.execute(
            select(IssueUpdate)
            .where(IssueUpdate.issue_id == issue.id)
            .order_by(IssueUpdate.created_at.asc())
        )
        return list(result.scalars().all())

    def _record(self, db: AsyncSession, issue: Issue, entry: Optional[UpdateEntry]) -> Optional[IssueUpdate]:
        if entry is None:
            return None
        update = IssueUpdate(
            issue_id=issue.id,
            user_id=entry.user_id,
            message=entry.message,
            status_from=entry.status_from,
            status_to=entry.status_to,
            is_internal=entry.is_internal,
        )
        db.add(update)
        if entry.status_to is not None:
            logger.log_lifecycle_event(
                "issue", issue.issue_id,
                entry.status_from.value if entry.status_from else None,
                entry.status_to.value,
                actor=str(entry.user_id),
            )
            if entry.status_to == IssueStatus.RESOLVED:
                notification_service.notify(
                    db, issue.reporter_id, "Issue Resolved",
                    f"Your issue {issue.issue_id} has been resolved.", NotificationType.SUCCESS,
                )
        return update

    # ==================== QUERIES ====================

    async def list_issues(
        self,
        db: AsyncSession,
        user: User,
        filters: IssueFilters,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        conditions = access_control.issue_scope(user)
        if filters.status:
            conditions.append(Issue.status == filters.status)
        if filters.type:
            conditions.append(Issue.type == filters.type)
        if filters.priority:
            conditions.append(Issue.priority == filters.priority)
        if filters.community and access_control.is_admin(user):
            conditions.append(Issue.community_id == access_control.ensure_valid_id(filters.community))

        query = select(Issue).where(*conditions).order_by(Issue.created_at.desc())
        result = await paginate(db, query, page, limit)
        return {
            "issues": [serialize_issue(issue, viewer=user) for issue in result["items"]],
            "pagination": result["pagination"],
        }

    async def get_issue(self, db: AsyncSession, user: User, issue_id: str) -> Issue:
        issue = await self._load(db, issue_id)
        access_control.ensure(access_control.can_view_issue(user, issue))
        return issue

    async def get_statistics(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        scope = access_control.issue_scope(user)
        stats = await issue_statistics(db, scope)
        stats["byType"] = await issues_by_type(db, scope)
        return stats

    # ==================== LIFECYCLE ====================

    async def create_issue(
        self,
        db: AsyncSession,
        user: User,
        data: IssueCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Issue:
        if data.related_pickup_id:
            access_control.ensure_valid_id(data.related_pickup_id)

        now = utcnow()
        sequence = await next_issue_sequence(db, now.date())

        issue = Issue(
            issue_id=lifecycle.format_issue_id(now.date(), sequence),
            reporter_id=user.id,
            community_id=user.community_id,
            type=data.type,
            title=data.title,
            description=data.description,
            location=data.location.model_dump(by_alias=True, exclude_none=True),
            priority=data.priority or IssuePriority.MEDIUM,
            category=data.category or IssueCategory.SERVICE,
            status=IssueStatus.NEW,
            related_pickup_id=data.related_pickup_id,
            tags=[tag.strip().lower() for tag in data.tags if tag.strip()],
            ip_address=ip_address,
            user_agent=user_agent[:512] if user_agent else None,
        )
        db.add(issue)
        await refresh_community_statistics(db, issue.community_id)
        await db.commit()
        await db.refresh(issue)

        logger.log_lifecycle_event("issue", issue.issue_id, None, IssueStatus.NEW.value, reporter=str(user.id))
        return issue

    async def update_issue(self, db: AsyncSession, user: User, issue_id: str, data: IssueUpdateRequest) -> Issue:
        """
        Admins triage (status, priority, assignment, notes, resolution).
        The reporter may edit title, description and location while the
        issue is new; a later attempt fails and leaves the issue untouched.
        """
        issue = await self.get_issue(db, user, issue_id)

        if access_control.is_admin(user):
            await self._admin_update(db, user, issue, data)
        elif issue.reporter_id == user.id:
            lifecycle.ensure_owner_editable(issue.status)
            updates = filter_updates(data.model_dump(exclude_unset=True), ISSUE_OWNER_FIELDS)
            for field, value in updates.items():
                if value is None:
                    continue
                if field == "location":
                    value = data.location.model_dump(by_alias=True, exclude_none=True)
                setattr(issue, field, value)
        else:
            raise AuthorizationError("Only the reporter or an admin can update this issue")

        await db.commit()
        await db.refresh(issue)
        return issue

    async def _admin_update(self, db: AsyncSession, user: User, issue: Issue, data: IssueUpdateRequest) -> None:
        now = utcnow()
        previous_status = IssueStatus(issue.status)
        updates = data.model_dump(exclude_unset=True)

        if data.resolution is not None:
            snapshot, entry = lifecycle.resolve(
                issue.snapshot(),
                user.id,
                data.resolution.solution,
                now,
                follow_up_required=data.resolution.follow_up_required,
                follow_up_date=data.resolution.follow_up_date,
            )
            issue.apply(snapshot)
            self._record(db, issue, entry)

        if data.status is not None and not (data.status == IssueStatus.RESOLVED and data.resolution is not None):
            snapshot, entry = lifecycle.change_status(issue.snapshot(), data.status, user.id, now)
            issue.apply(snapshot)
            self._record(db, issue, entry)

        if "assigned_to_id" in updates:
            if data.assigned_to_id:
                access_control.ensure_valid_id(data.assigned_to_id)
                if not await db.get(User, data.assigned_to_id):
                    raise UserNotFoundError(data.assigned_to_id)
            issue.assigned_to_id = data.assigned_to_id
        if data.priority is not None:
            issue.priority = data.priority
        if "notes" in updates:
            issue.notes = data.notes

        if issue.status != previous_status:
            await refresh_community_statistics(db, issue.community_id)

    async def resolve_issue(
        self,
        db: AsyncSession,
        user: User,
        issue_id: str,
        solution: str,
        follow_up_required: bool = False,
        follow_up_date=None,
    ) -> Issue:
        """Resolve an issue; resolvedAt keeps its first value on repeated calls"""
        issue = await self._load(db, issue_id)
        if not access_control.is_admin(user):
            raise AuthorizationError("Only admins can resolve issues")

        snapshot, entry = lifecycle.resolve(
            issue.snapshot(), user.id, solution, utcnow(),
            follow_up_required=follow_up_required, follow_up_date=follow_up_date,
        )
        issue.apply(snapshot)
        self._record(db, issue, entry)
        await refresh_community_statistics(db, issue.community_id)
        await db.commit()
        await db.refresh(issue)
        return issue

    async def add_comment(self, db: AsyncSession, user: User, issue_id: str, data: IssueComment) -> IssueUpdate:
        """Append to the update log, optionally moving the status (admin only)"""
        issue = await self._load(db, issue_id)
        is_admin = access_control.is_admin(user)
        if not (is_admin or issue.reporter_id == user.id):
            raise AuthorizationError("Only the reporter or an admin can comment on this issue")
        if data.status is not None and not is_admin:
            raise AuthorizationError("Only admins can change issue status")

        entry = None
        if data.status is not None:
            snapshot, entry = lifecycle.change_status(
                issue.snapshot(), data.status, user.id, utcnow(),
                message=data.message, is_internal=data.is_internal,
            )
            issue.apply(snapshot)
        if entry is None:
            entry = UpdateEntry(user_id=user.id, message=data.message, is_internal=data.is_internal and is_admin)

        update = self._record(db, issue, entry)
        if entry.status_to is not None:
            await refresh_community_statistics(db, issue.community_id)

        await db.commit()
        await db.refresh(update)
        return update

    async def delete_issue(self, db: AsyncSession, user: User, issue_id: str) -> None:
        issue = await self._load(db, issue_id)
        if not access_control.is_admin(user):
            if issue.reporter_id != user.id:
                raise AuthorizationError("Only the reporter or an admin can delete this issue")
            if IssueStatus(issue.status) != IssueStatus.NEW:
                raise StateConflictError("Issue can only be deleted while it is new",
                                         current_state=IssueStatus(issue.status).value)

        community_id = issue.community_id
        await db.execute(delete(IssueUpdate).where(IssueUpdate.issue_id == issue.id))
        await db.delete(issue)
        await refresh_community_statistics(db, community_id)
        await db.commit()
        logger.info(f"Deleted issue {issue.issue_id}")

    async def add_feedback(self, db: AsyncSession, user: User, issue_id: str, data: IssueFeedback) -> Issue:
        issue = await self._load(db, issue_id)
        if issue.reporter_id != user.id:
            raise AuthorizationError("Only the reporter can rate this issue")
        if IssueStatus(issue.status) not in (IssueStatus.RESOLVED, IssueStatus.CLOSED):
            raise StateConflictError("Feedback can only be given on resolved issues",
                                     current_state=IssueStatus(issue.status).value)

        issue.feedback = {
            "satisfied": data.satisfied,
            "rating": data.rating,
            "comment": data.comment,
            "submittedAt": utcnow().isoformat(),
        }
        await db.commit()
        await db.refresh(issue)
        return issue


issue_service = IssueService()
