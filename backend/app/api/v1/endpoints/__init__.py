# API endpoints
from . import analytics, auth, communities, health, issues, notifications, pickups, routes, settings, users

__all__ = ["analytics", "auth", "communities", "health", "issues", "notifications", "pickups", "routes", "settings", "users"]
