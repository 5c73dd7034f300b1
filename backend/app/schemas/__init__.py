# Pydantic schemas
from app.schemas.common import Page, success_response, error_fields
from app.schemas.auth import UserRegister, UserLogin, UserResponse, LoginResponse, ProfileUpdate, PasswordChange
from app.schemas.service import ServiceCreate, ServiceUpdate, ServiceResponse, ServiceBrief
from app.schemas.complaint import (
    ComplaintSubmission,
    ComplaintStatusUpdate,
    ComplaintTrackRequest,
    ComplaintSummary,
    ComplaintDetail,
    ComplaintTrackingResponse,
    ComplaintStatistics,
)
from app.schemas.notification import (
    ComplaintCreatedPayload,
    ComplaintStatusChangedPayload,
    NotificationPayload,
    NotificationResponse,
    UnreadCountResponse,
)

__all__ = [
    "Page",
    "success_response",
    "error_fields",
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "LoginResponse",
    "ProfileUpdate",
    "PasswordChange",
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceResponse",
    "ServiceBrief",
    "ComplaintSubmission",
    "ComplaintStatusUpdate",
    "ComplaintTrackRequest",
    "ComplaintSummary",
    "ComplaintDetail",
    "ComplaintTrackingResponse",
    "ComplaintStatistics",
    "ComplaintCreatedPayload",
    "ComplaintStatusChangedPayload",
    "NotificationPayload",
    "NotificationResponse",
    "UnreadCountResponse",
]
