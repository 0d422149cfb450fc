"""Role assignment and per-role write whitelists"""
import enum
from typing import Any, Dict, FrozenSet, Iterable


class UserRole(str, enum.Enum):
    """User roles"""
    USER = "user"
    COMMUNITY_ADMIN = "community_admin"
    ADMIN = "admin"


DEFAULT_ADMIN_DOMAIN = "admin.com"


def assign_role(email: str, admin_domain: str = DEFAULT_ADMIN_DOMAIN) -> UserRole:
    """
    Decide the role of a newly registered account.

    Anyone who can register an address under the admin domain becomes an
    admin. This is a convention inherited from the product, not an
    authorization boundary; the result is stored once and never re-derived.
    """
    if email.strip().lower().endswith(f"@{admin_domain.lower()}"):
        return UserRole.ADMIN
    return UserRole.USER


def requires_community(role: UserRole) -> bool:
    """Plain users must belong to a community"""
    return role == UserRole.USER


# Pickup fields
PICKUP_OWNER_FIELDS: FrozenSet[str] = frozenset({
    "scheduled_date", "time_slot", "waste_type", "notes", "estimated_weight", "address",
})
PICKUP_ADMIN_FIELDS: FrozenSet[str] = PICKUP_OWNER_FIELDS | frozenset({
    "status", "route_id", "driver_id", "vehicle", "actual_weight", "priority",
})

# Issue fields
ISSUE_OWNER_FIELDS: FrozenSet[str] = frozenset({"title", "description", "location"})
ISSUE_ADMIN_FIELDS: FrozenSet[str] = frozenset({
    "status", "priority", "assigned_to_id", "notes", "resolution",
})

# User profile fields
USER_SELF_FIELDS: FrozenSet[str] = frozenset({"name", "phone", "address", "preferences"})
USER_ADMIN_FIELDS: FrozenSet[str] = USER_SELF_FIELDS | frozenset({
    "email", "role", "is_active", "community_id",
})

# Community fields a community admin may change on their own community
COMMUNITY_MANAGER_FIELDS: FrozenSet[str] = frozenset({
    "name", "description", "address", "pickup_schedule", "status", "contact_info", "settings",
})
COMMUNITY_ADMIN_FIELDS: FrozenSet[str] = COMMUNITY_MANAGER_FIELDS | frozenset({"admin_id"})


def pickup_writable_fields(role: UserRole) -> FrozenSet[str]:
    return PICKUP_ADMIN_FIELDS if role == UserRole.ADMIN else PICKUP_OWNER_FIELDS


def user_writable_fields(role: UserRole) -> FrozenSet[str]:
    return USER_ADMIN_FIELDS if role == UserRole.ADMIN else USER_SELF_FIELDS


def community_writable_fields(role: UserRole) -> FrozenSet[str]:
    return COMMUNITY_ADMIN_FIELDS if role == UserRole.ADMIN else COMMUNITY_MANAGER_FIELDS


def filter_updates(updates: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Drop every key the caller may not write; unknown keys are ignored, not rejected"""
    allowed = set(allowed)
    return {key: value for key, value in updates.items() if key in allowed}
