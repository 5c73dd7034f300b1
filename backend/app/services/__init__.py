from app.services.storage_service import LocalStorageService, storage_service
from app.services.email_service import EmailService, email_service
from app.services.notification_service import NotificationService, notification_service
from app.services.service_catalog_service import ServiceCatalogService, service_catalog_service
from app.services.complaint_service import ComplaintService, complaint_service

__all__ = [
    "LocalStorageService",
    "storage_service",
    "EmailService",
    "email_service",
    "NotificationService",
    "notification_service",
    "ServiceCatalogService",
    "service_catalog_service",
    "ComplaintService",
    "complaint_service",
]
