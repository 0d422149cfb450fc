"""
Role-scoped data access

Every list and single-record handler builds its query from one of the
`*_scope` functions below, so a caller can never read rows outside their
role's reach:

    user             own records
    community_admin  records in their community (plus their own)
    admin            everything

The `can_*` predicates are the same rules applied to an already loaded row.
"""
from typing import List, Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import AuthorizationError, ValidationError
from app.core.types import is_valid_uuid
from app.domain.roles import UserRole
from app.models.community import Community
from app.models.issue import Issue
from app.models.pickup import Pickup
from app.models.route import Route
from app.models.user import User


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def is_community_admin(user: User) -> bool:
    return user.role == UserRole.COMMUNITY_ADMIN


def ensure_valid_id(value: Optional[str]) -> str:
    if not value or not is_valid_uuid(value):
        raise ValidationError("Invalid ID format", field="id")
    return str(value)


def route_serves_community(community_id: str) -> ColumnElement:
    """Match routes whose community_ids JSON list contains the id"""
    return cast(Route.community_ids, String).like(f'%"{community_id}"%')


# ==================== QUERY SCOPES ====================

def pickup_scope(user: User) -> List[ColumnElement]:
    if is_admin(user):
        return []
    if is_community_admin(user) and user.community_id:
        return [or_(Pickup.community_id == user.community_id, Pickup.user_id == user.id)]
    return [Pickup.user_id == user.id]


def issue_scope(user: User) -> List[ColumnElement]:
    if is_admin(user):
        return []
    if is_community_admin(user) and user.community_id:
        return [or_(Issue.community_id == user.community_id, Issue.reporter_id == user.id)]
    return [Issue.reporter_id == user.id]


def route_scope(user: User) -> List[ColumnElement]:
    if is_admin(user):
        return []
    if not user.community_id:
        return [Route.id.is_(None)]
    return [route_serves_community(user.community_id)]


def community_scope(user: User) -> List[ColumnElement]:
    if is_admin(user):
        return []
    if not user.community_id:
        return [Community.id.is_(None)]
    return [Community.id == user.community_id]


# ==================== ROW CHECKS ====================

def can_view_pickup(user: User, pickup: Pickup) -> bool:
    if is_admin(user) or pickup.user_id == user.id:
        return True
    return is_community_admin(user) and bool(user.community_id) and pickup.community_id == user.community_id


def can_complete_pickup(user: User, pickup: Pickup) -> bool:
    """Admins and the driver assigned to the pickup"""
    return is_admin(user) or (pickup.driver_id is not None and pickup.driver_id == user.id)


def can_view_issue(user: User, issue: Issue) -> bool:
    if is_admin(user) or issue.reporter_id == user.id:
        return True
    return is_community_admin(user) and bool(user.community_id) and issue.community_id == user.community_id


def can_view_route(user: User, route: Route) -> bool:
    if is_admin(user):
        return True
    return bool(user.community_id) and user.community_id in [str(c) for c in route.community_ids or []]


def can_manage_community(user: User, community_id: str) -> bool:
    """Admins, and community admins for their own community"""
    if is_admin(user):
        return True
    return is_community_admin(user) and user.community_id == community_id


def can_view_community(user: User, community_id: str) -> bool:
    return is_admin(user) or user.community_id == community_id


def ensure(allowed: bool, message: str = "Access denied") -> None:
    if not allowed:
        raise AuthorizationError(message)
