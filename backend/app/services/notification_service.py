"""
Notification Service - complaint notifications for their owners

Two channels per event:
- in-app: a Notification row added to the caller's session, so it commits
  (or rolls back) together with the complaint change
- mail: rendered up front, then scheduled with asyncio.create_task only
  after the caller has committed. Failures are logged, never raised.

Recipient operations (list, unread count, mark read, delete) are always
scoped to the authenticated recipient; someone else's notification is
reported as not found.
"""

import asyncio
from datetime import datetime
from typing import List, Set, Tuple, Union

from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotificationNotFoundError
from app.core.logging_config import logger
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import (
    ComplaintCreatedPayload,
    ComplaintStatusChangedPayload,
    payload_data,
)
from app.services.email_service import (
    EmailService,
    OutgoingMail,
    email_service,
    build_complaint_created_mail,
    build_status_changed_mail,
)

Payload = Union[ComplaintCreatedPayload, ComplaintStatusChangedPayload]


class NotificationService:
    """Dispatcher for complaint events plus the recipient inbox"""

    def __init__(self, mailer: EmailService = email_service):
        self.mailer = mailer
        self._tasks: Set[asyncio.Task] = set()

    # ==================== DISPATCH ====================

    def build_mail(self, recipient: User, payload: Payload) -> OutgoingMail:
        if isinstance(payload, ComplaintCreatedPayload):
            return build_complaint_created_mail(
                to_email=recipient.email,
                recipient_name=recipient.name,
                registration_number=payload.registration_number,
                applicant_name=payload.applicant_name,
                service_name=payload.service_name,
                status=payload.status.value,
            )
        return build_status_changed_mail(
            to_email=recipient.email,
            recipient_name=recipient.name,
            registration_number=payload.registration_number,
            applicant_name=payload.applicant_name,
            service_name=payload.service_name,
            old_status=payload.old_status.value,
            new_status=payload.new_status.value,
        )

    def record(self, db: AsyncSession, recipient: User, payload: Payload) -> Notification:
        """Add the in-app record to the session; committed by the caller"""
        notification = Notification(
            user_id=recipient.id,
            type=payload.kind,
            data=payload_data(payload),
        )
        db.add(notification)
        return notification

    def prepare(self, db: AsyncSession, recipient: User, payload: Payload) -> OutgoingMail:
        """
        Stage a notification inside the current transaction.

        Returns the rendered mail; pass it to schedule() once the transaction
        has committed.
        """
        self.record(db, recipient, payload)
        return self.build_mail(recipient, payload)

    def schedule(self, mail: OutgoingMail) -> None:
        """Fire-and-forget mail delivery"""
        task = asyncio.create_task(self.deliver(mail))
        # Keep a reference so the task is not garbage collected mid-flight
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def deliver(self, mail: OutgoingMail) -> bool:
        try:
            sent = await self.mailer.send_mail(mail)
        except Exception as e:
            logger.log_error_with_context(e, context="notification mail", to_email=mail.to_email)
            return False
        if not sent:
            logger.warning(f"[Notification] Mail not delivered to {mail.to_email}: {mail.subject}")
        return sent

    # ==================== RECIPIENT INBOX ====================

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[Notification], int]:
        total = await db.scalar(
            select(func.count(Notification.id)).where(Notification.user_id == user_id)
        )
        result = await db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total or 0

    async def unread_count(self, db: AsyncSession, user_id: str) -> int:
        count = await db.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
        )
        return count or 0

    async def get_for_user(self, db: AsyncSession, user_id: str, notification_id: str) -> Notification:
        result = await db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotificationNotFoundError(notification_id)
        return notification

    async def mark_as_read(self, db: AsyncSession, user_id: str, notification_id: str) -> Notification:
        notification = await self.get_for_user(db, user_id, notification_id)
        if notification.read_at is None:
            notification.read_at = datetime.utcnow()
            await db.commit()
            await db.refresh(notification)
        return notification

    async def mark_all_as_read(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read_at.is_(None))
            .values(read_at=datetime.utcnow())
        )
        await db.commit()
        return result.rowcount or 0

    async def delete(self, db: AsyncSession, user_id: str, notification_id: str) -> None:
        notification = await self.get_for_user(db, user_id, notification_id)
        await db.execute(delete(Notification).where(Notification.id == notification.id))
        await db.commit()


notification_service = NotificationService()
