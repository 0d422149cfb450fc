"""
Custom Exceptions for EcoWasteConnect
=====================================

Services raise these instead of HTTPException so the same rules can be
exercised outside a request. The handlers registered in app.main turn them
into the standard response envelope:

    {"success": false, "message": "...", "errors": [...]}

Usage:
    from app.core.exceptions import PickupNotFoundError, StateConflictError

    if not pickup:
        raise PickupNotFoundError(pickup_id)

    if issue.status != IssueStatus.NEW:
        raise StateConflictError("Issue can no longer be edited")
"""

from typing import Optional, Any, Dict, List


class WasteConnectError(Exception):
    """Base exception for all EcoWasteConnect errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def errors(self) -> List[Dict[str, Any]]:
        """Field-level errors for the response envelope"""
        field = self.details.get("field")
        if not field:
            return []
        return [{"field": field, "message": self.message}]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(WasteConnectError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(WasteConnectError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(WasteConnectError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class CommunityNotFoundError(ResourceNotFoundError):
    def __init__(self, community_id: str):
        super().__init__("Community", community_id)


class RouteNotFoundError(ResourceNotFoundError):
    def __init__(self, route_id: str):
        super().__init__("Route", route_id)


class PickupNotFoundError(ResourceNotFoundError):
    def __init__(self, pickup_id: str):
        super().__init__("Pickup", pickup_id)


class IssueNotFoundError(ResourceNotFoundError):
    def __init__(self, issue_id: str):
        super().__init__("Issue", issue_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class ReportNotFoundError(ResourceNotFoundError):
    def __init__(self, report_id: str):
        super().__init__("Report", report_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(WasteConnectError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class StateConflictError(WasteConnectError):
    """Operation not allowed in the entity's current state"""

    status_code = 400

    def __init__(self, message: str, current_state: Optional[str] = None):
        details = {"current_state": current_state} if current_state else {}
        super().__init__(message, code="STATE_CONFLICT", details=details)


class InvalidTransitionError(StateConflictError):
    """Status change not present in the lifecycle transition table"""

    def __init__(self, entity: str, from_status: str, to_status: str):
        super().__init__(
            f"Cannot change {entity} status from '{from_status}' to '{to_status}'",
            current_state=from_status
        )
        self.code = "INVALID_TRANSITION"
        self.details["requested_state"] = to_status


class DuplicateEntryError(WasteConnectError):
    """Uniqueness constraint violated (email, community name)"""

    status_code = 400

    def __init__(self, message: str = "Duplicate entry detected", field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="DUPLICATE_ENTRY", details=details)


class CapacityExceededError(WasteConnectError):
    """Route has no capacity left for the requested day"""

    status_code = 409

    def __init__(self, route_id: str, day: str):
        super().__init__(
            f"Route '{route_id}' is fully booked for {day}",
            code="ROUTE_CAPACITY_EXCEEDED",
            details={"route_id": route_id, "day": day}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: WasteConnectError) -> Dict[str, Any]:
    """Convert exception to API error response envelope"""
    body: Dict[str, Any] = {
        "success": False,
        "message": error.message,
        "code": error.code,
    }
    if error.errors:
        body["errors"] = error.errors
    return body
