from fastapi import APIRouter
from app.api.v1.endpoints import analytics, auth, communities, health, issues, notifications, pickups, routes, settings, users

api_router = APIRouter()

# /health, /health/live, /health/ready
api_router.include_router(health.router)

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(communities.router, prefix="/communities", tags=["Communities"])
api_router.include_router(routes.router, prefix="/routes", tags=["Routes"])
api_router.include_router(pickups.router, prefix="/pickups", tags=["Pickups"])
api_router.include_router(issues.router, prefix="/issues", tags=["Issues"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
