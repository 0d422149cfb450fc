from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AliasChoices, Field, StringConstraints

from app.domain.issue_lifecycle import IssueCategory, IssuePriority, IssueStatus, IssueType
from app.schemas.common import CamelModel, Coordinates, UTCDateTime

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=1000)]


class IssueLocation(CamelModel):
    address: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    coordinates: Optional[Coordinates] = None
    landmark: Optional[str] = Field(None, max_length=100)


class IssueCreate(CamelModel):
    type: IssueType
    title: Title
    description: Description
    location: IssueLocation
    priority: Optional[IssuePriority] = None
    category: Optional[IssueCategory] = None
    related_pickup_id: Optional[str] = Field(None, alias="relatedPickup")
    tags: List[str] = Field(default_factory=list)


class ResolutionInput(CamelModel):
    solution: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
    follow_up_required: bool = False
    follow_up_date: Optional[UTCDateTime] = None


class IssueUpdate(CamelModel):
    # Reporter, while the issue is new
    title: Optional[Title] = None
    description: Optional[Description] = None
    location: Optional[IssueLocation] = None
    # Admin
    status: Optional[IssueStatus] = None
    priority: Optional[IssuePriority] = None
    assigned_to_id: Optional[str] = Field(None, alias="assignedTo")
    notes: Optional[str] = Field(None, max_length=1000)
    resolution: Optional[ResolutionInput] = None


class IssueComment(CamelModel):
    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)] = Field(
        ..., validation_alias=AliasChoices("message", "comment")
    )
    status: Optional[IssueStatus] = None
    is_internal: bool = False


class IssueFeedback(CamelModel):
    satisfied: Optional[bool] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class IssueFilters(CamelModel):
    status: Optional[IssueStatus] = None
    type: Optional[IssueType] = None
    priority: Optional[IssuePriority] = None
    community: Optional[str] = None


class IssueUpdateResponse(CamelModel):
    id: str
    user_id: str
    message: str
    status_change: Optional[Dict[str, Any]] = None
    is_internal: bool = False
    created_at: datetime


class IssueResponse(CamelModel):
    id: str
    issue_id: str
    reporter_id: str
    community_id: Optional[str] = None
    type: IssueType
    title: str
    description: str
    location: Dict[str, Any]
    full_location: str = ""
    priority: IssuePriority
    status: IssueStatus
    status_display: str
    category: IssueCategory
    urgency: int = 5
    assigned_to_id: Optional[str] = None
    related_pickup_id: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    resolution: Optional[Dict[str, Any]] = None
    feedback: Optional[Dict[str, Any]] = None
    age_in_days: int = 0
    resolution_time: Optional[int] = None
    updates: List[IssueUpdateResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None
