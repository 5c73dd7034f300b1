"""
Custom Exceptions for the complaint portal
==========================================

Services raise these instead of HTTPException so that the same rules apply
whether an operation is called from an endpoint, a seed script or a test.
The handlers registered in app.main turn them into the response envelope:

    {"status": "error", "message": "...", "errors": {...}}

Usage:
    from app.core.exceptions import ComplaintNotFoundError, AuthorizationError

    if not complaint:
        raise ComplaintNotFoundError(complaint_id)
"""

from typing import Optional, Any, Dict, List


class PortalError(Exception):
    """Base exception for all portal errors"""

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


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(PortalError):
    """Missing, invalid or expired credentials"""

    status_code = 401

    def __init__(self, message: str = "Unauthenticated"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(PortalError):
    """Authenticated but not allowed. The message never says why."""

    status_code = 403

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ComplaintNotFoundError(ResourceNotFoundError):
    def __init__(self, complaint_id: str):
        super().__init__("Complaint", complaint_id)


class ServiceNotFoundError(ResourceNotFoundError):
    def __init__(self, service_id: str):
        super().__init__("Service", service_id)


class DocumentNotFoundError(ResourceNotFoundError):
    def __init__(self, document_id: str):
        super().__init__("Document", document_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class StoredFileMissingError(ResourceNotFoundError):
    """Metadata exists but the file is gone from disk"""

    def __init__(self, path: str):
        super().__init__("File", path, message="File not found on storage")


# ============================================
# Validation Errors (422-type)
# ============================================

class ValidationError(PortalError):
    """
    Input validation failed.

    `errors` maps a field name to every message raised for it, so one
    response lists all offending fields at once.
    """

    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message, code="VALIDATION_ERROR", details={"errors": errors})
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class ConflictError(PortalError):
    """Request conflicts with existing state"""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


# ============================================
# Storage Errors
# ============================================

class StorageError(PortalError):
    """File write/read failed. Rendered with a generic message."""

    status_code = 500

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="STORAGE_ERROR")
        if path:
            self.details["path"] = path


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: PortalError) -> Dict[str, Any]:
    """Convert exception to the API error envelope"""
    body: Dict[str, Any] = {"status": "error", "message": error.message}
    if isinstance(error, ValidationError):
        body["errors"] = error.errors
    elif isinstance(error, StorageError):
        body["message"] = "Failed to store or read file"
    return body
