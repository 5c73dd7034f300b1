"""
In-app notification endpoints, always scoped to the authenticated recipient
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.modules.auth.access import Requester
from app.modules.auth.dependencies import get_requester
from app.schemas.common import MAX_PAGE, Page, success_response
from app.schemas.notification import NotificationResponse, UnreadCountResponse
from app.services.notification_service import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    per_page = settings.NOTIFICATIONS_PAGE_SIZE
    items, total = await notification_service.list_for_user(db, requester.user_id, page, per_page)
    return success_response(Page.build(
        [NotificationResponse.model_validate(n) for n in items], total, page, per_page
    ))


@router.get("/unread-count")
async def unread_count(
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    count = await notification_service.unread_count(db, requester.user_id)
    return success_response(UnreadCountResponse(count=count))


@router.put("/mark-all-read")
async def mark_all_read(
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    await notification_service.mark_all_as_read(db, requester.user_id)
    return success_response(message="All notifications marked as read")


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    notification = await notification_service.mark_as_read(db, requester.user_id, notification_id)
    return success_response(NotificationResponse.model_validate(notification), message="Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    await notification_service.delete(db, requester.user_id, notification_id)
    return success_response(message="Notification deleted")
