"""
Access rules for complaints and admin-only operations.

Every check takes an explicit Requester built once at the request boundary
(see dependencies.get_requester), never ambient state. Failures raise
AuthorizationError (403) with the generic "Unauthorized" message; existence
checks happen before these so a missing record is still a 404.
"""

from dataclasses import dataclass

from app.core.exceptions import AuthorizationError
from app.models.user import User, UserRole


@dataclass(frozen=True)
class Requester:
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Requester":
        return cls(user_id=str(user.id), role=UserRole(user.role))


def require_admin(requester: Requester) -> None:
    if not requester.is_admin:
        raise AuthorizationError()


def can_view_complaint(requester: Requester, complaint) -> bool:
    """Owner or admin"""
    return requester.is_admin or str(complaint.user_id) == requester.user_id


def ensure_can_view_complaint(requester: Requester, complaint) -> None:
    if not can_view_complaint(requester, complaint):
        raise AuthorizationError()


def scope_complaints(query, requester: Requester):
    """Restrict a complaint query to what the requester may list"""
    from app.models.complaint import Complaint

    if requester.is_admin:
        return query
    return query.where(Complaint.user_id == requester.user_id)
