# Pydantic schemas
from app.schemas.common import (
    CamelModel,
    Address,
    FullAddress,
    Coordinates,
    PaginationMeta,
    dump,
    success_response,
)
from app.schemas.auth import UserRegister, UserLogin, ProfileUpdate, ChangePasswordRequest
from app.schemas.user import UserResponse, UserUpdate, BulkActionRequest, CommunitySummary
from app.schemas.community import CommunityCreate, CommunityUpdate, CommunityResponse
from app.schemas.route import RouteCreate, RouteUpdate, RouteResponse
from app.schemas.pickup import (
    PickupCreate,
    PickupUpdate,
    PickupComplete,
    PickupCancel,
    PickupFeedback,
    PickupFilters,
    PickupResponse,
)
from app.schemas.issue import (
    IssueCreate,
    IssueUpdate,
    IssueComment,
    IssueFeedback,
    IssueFilters,
    IssueResponse,
)
from app.schemas.notification import NotificationCreate, NotificationResponse
from app.schemas.settings import UserSettingsUpdate, SystemSettingsUpdate, CommunitySettingsUpdate
from app.schemas.analytics import ReportRequest, ReportResponse
