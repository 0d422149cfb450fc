from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text, JSON

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow
from app.domain.issue_lifecycle import (
    IssueCategory,
    IssuePriority,
    IssueSnapshot,
    IssueStatus,
    IssueType,
    STATUS_LABELS,
    resolution_time_hours,
)


class Issue(Base):
    """A user-reported problem"""
    __tablename__ = "issues"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    # ISS + YYMMDD + sequence, immutable once assigned
    issue_id = Column(String(20), unique=True, index=True, nullable=False)

    reporter_id = Column(GUID, nullable=False, index=True)
    community_id = Column(GUID, nullable=True, index=True)

    type = Column(SQLEnum(IssueType), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(JSON, nullable=False)  # address, coordinates, landmark

    priority = Column(SQLEnum(IssuePriority), default=IssuePriority.MEDIUM, nullable=False)
    status = Column(SQLEnum(IssueStatus), default=IssueStatus.NEW, nullable=False, index=True)
    category = Column(SQLEnum(IssueCategory), default=IssueCategory.SERVICE, nullable=False)
    urgency = Column(Integer, default=5, nullable=False)

    assigned_to_id = Column(GUID, nullable=True, index=True)
    related_pickup_id = Column(GUID, nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    images = Column(JSON, default=list)

    # Resolution record
    resolution_solution = Column(Text, nullable=True)
    resolved_by_id = Column(GUID, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    follow_up_required = Column(Boolean, default=False, nullable=False)
    follow_up_date = Column(DateTime, nullable=True)

    feedback = Column(JSON, nullable=True)  # satisfied, rating, comment, submittedAt

    # Request metadata
    source = Column(String(20), default="web")
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def resolution(self):
        if not (self.resolved_at or self.resolution_solution):
            return None
        return {
            "solution": self.resolution_solution,
            "resolvedBy": self.resolved_by_id,
            "resolvedAt": self.resolved_at,
            "followUpRequired": bool(self.follow_up_required),
            "followUpDate": self.follow_up_date,
        }

    @property
    def full_location(self) -> str:
        if not self.location:
            return ""
        parts = [self.location.get("address"), self.location.get("landmark")]
        return ", ".join(part for part in parts if part)

    @property
    def age_in_days(self) -> int:
        return (utcnow() - self.created_at).days if self.created_at else 0

    @property
    def resolution_time(self):
        """Hours from report to resolution"""
        if not self.created_at:
            return None
        return resolution_time_hours(self.created_at, self.resolved_at)

    @property
    def status_display(self) -> str:
        return STATUS_LABELS.get(IssueStatus(self.status), str(self.status))

    def snapshot(self) -> IssueSnapshot:
        return IssueSnapshot(
            status=IssueStatus(self.status),
            resolved_at=self.resolved_at,
            resolved_by_id=self.resolved_by_id,
            solution=self.resolution_solution,
            follow_up_required=bool(self.follow_up_required),
            follow_up_date=self.follow_up_date,
        )

    def apply(self, snapshot: IssueSnapshot) -> None:
        self.status = snapshot.status
        self.resolved_at = snapshot.resolved_at
        self.resolved_by_id = snapshot.resolved_by_id
        self.resolution_solution = snapshot.solution
        self.follow_up_required = snapshot.follow_up_required
        self.follow_up_date = snapshot.follow_up_date

    def __repr__(self):
        return f"<Issue {self.issue_id} {self.status}>"


class IssueUpdate(Base):
    """Append-only log entry on an issue"""
    __tablename__ = "issue_updates"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    issue_id = Column(GUID, nullable=False, index=True)
    user_id = Column(GUID, nullable=False)
    message = Column(Text, nullable=False)
    status_from = Column(SQLEnum(IssueStatus), nullable=True)
    status_to = Column(SQLEnum(IssueStatus), nullable=True)
    is_internal = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    @property
    def status_change(self):
        if self.status_to is None:
            return None
        return {
            "from": self.status_from.value if self.status_from else None,
            "to": self.status_to.value,
        }
