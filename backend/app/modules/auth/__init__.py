# Authentication and access control

from app.modules.auth.access import (
    Requester,
    require_admin,
    can_view_complaint,
    ensure_can_view_complaint,
    scope_complaints,
)
from app.modules.auth.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_current_admin,
    get_requester,
    get_admin_requester,
    get_optional_requester,
)

__all__ = [
    "Requester",
    "require_admin",
    "can_view_complaint",
    "ensure_can_view_complaint",
    "scope_complaints",
    "get_current_user",
    "get_optional_current_user",
    "get_current_admin",
    "get_requester",
    "get_admin_requester",
    "get_optional_requester",
]
