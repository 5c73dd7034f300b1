# API endpoints
from . import auth, services, complaints, notifications

__all__ = ["auth", "services", "complaints", "notifications"]
