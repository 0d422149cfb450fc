# Re-export all models for convenient imports
from app.models.user import User, UserRole
from app.models.community import Community, CommunityStatus
from app.models.route import Route, RouteStatus, VehicleType
from app.models.pickup import Pickup
from app.models.issue import Issue, IssueUpdate
from app.models.notification import Notification, NotificationRead, NotificationType
from app.models.system_setting import SystemSetting
from app.models.report import Report
from app.models.counter import IssueSequence, RouteDailyLoad

__all__ = [
    "User",
    "UserRole",
    "Community",
    "CommunityStatus",
    "Route",
    "RouteStatus",
    "VehicleType",
    "Pickup",
    "Issue",
    "IssueUpdate",
    "Notification",
    "NotificationRead",
    "NotificationType",
    "SystemSetting",
    "Report",
    "IssueSequence",
    "RouteDailyLoad",
]
