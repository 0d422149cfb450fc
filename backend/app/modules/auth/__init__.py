# Authentication module

from app.modules.auth.dependencies import (
    get_current_user,
    get_current_admin,
    get_admin_or_community_admin,
    require_roles,
)

__all__ = [
    "get_current_user",
    "get_current_admin",
    "get_admin_or_community_admin",
    "require_roles",
]
