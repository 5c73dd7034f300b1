# Re-export all models for convenient imports
from app.models.user import User, UserRole
from app.models.service import Service
from app.models.complaint import Complaint, ComplaintDocument, ComplaintStatusHistory, ComplaintStatus
from app.models.notification import Notification

__all__ = [
    # User
    "User",
    "UserRole",
    # Catalog
    "Service",
    # Complaints
    "Complaint",
    "ComplaintDocument",
    "ComplaintStatusHistory",
    "ComplaintStatus",
    # Notifications
    "Notification",
]
