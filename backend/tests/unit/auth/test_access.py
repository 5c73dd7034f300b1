"""
Unit Tests for complaint access rules
"""
import pytest
from types import SimpleNamespace

from sqlalchemy import select

from app.core.exceptions import AuthorizationError
from app.models.complaint import Complaint
from app.models.user import User, UserRole
from app.modules.auth.access import (
    Requester,
    can_view_complaint,
    ensure_can_view_complaint,
    require_admin,
    scope_complaints,
)

OWNER = Requester(user_id="owner-id", role=UserRole.USER)
STRANGER = Requester(user_id="stranger-id", role=UserRole.USER)
ADMIN = Requester(user_id="admin-id", role=UserRole.ADMIN)


def _complaint():
    return SimpleNamespace(user_id="owner-id")


class TestRequester:
    def test_from_user(self):
        user = User(id="3f1c7a0e-5b2d-4e8f-9a6b-1c2d3e4f5a6b", role=UserRole.ADMIN)
        requester = Requester.from_user(user)

        assert requester.user_id == "3f1c7a0e-5b2d-4e8f-9a6b-1c2d3e4f5a6b"
        assert requester.is_admin

    def test_citizen_is_not_admin(self):
        assert not OWNER.is_admin


class TestComplaintVisibility:
    def test_owner_can_view(self):
        assert can_view_complaint(OWNER, _complaint())

    def test_admin_can_view_any(self):
        assert can_view_complaint(ADMIN, _complaint())

    def test_stranger_cannot_view(self):
        assert not can_view_complaint(STRANGER, _complaint())
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_can_view_complaint(STRANGER, _complaint())
        assert exc_info.value.message == "Unauthorized"
        assert exc_info.value.status_code == 403


class TestRequireAdmin:
    def test_admin_passes(self):
        require_admin(ADMIN)

    def test_citizen_rejected(self):
        with pytest.raises(AuthorizationError):
            require_admin(OWNER)


class TestScopeComplaints:
    def test_admin_query_unchanged(self):
        query = select(Complaint)
        assert scope_complaints(query, ADMIN) is query

    def test_citizen_query_filtered_by_owner(self):
        scoped = scope_complaints(select(Complaint), OWNER)
        compiled = scoped.compile(compile_kwargs={"literal_binds": True})

        assert "complaints.user_id = 'owner-id'" in str(compiled)
