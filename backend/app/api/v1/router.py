from fastapi import APIRouter
from app.api.v1.endpoints import auth, services, complaints, notifications

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "pengaduan-backend"}


api_router.include_router(auth.router)
api_router.include_router(services.router)
api_router.include_router(complaints.router)
api_router.include_router(notifications.router)
