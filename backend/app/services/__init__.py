from app.services.access_control import ensure, ensure_valid_id
from app.services.analytics_service import AnalyticsService, analytics_service
from app.services.community_service import CommunityService, community_service
from app.services.issue_service import IssueService, issue_service
from app.services.notification_service import NotificationService, notification_service
from app.services.pickup_service import PickupService, pickup_service
from app.services.route_service import RouteService, route_service
from app.services.settings_service import SettingsService, settings_service
from app.services.user_service import UserService, user_service

__all__ = [
    "ensure",
    "ensure_valid_id",
    "AnalyticsService",
    "analytics_service",
    "CommunityService",
    "community_service",
    "IssueService",
    "issue_service",
    "NotificationService",
    "notification_service",
    "PickupService",
    "pickup_service",
    "RouteService",
    "route_service",
    "SettingsService",
    "settings_service",
    "UserService",
    "user_service",
]
