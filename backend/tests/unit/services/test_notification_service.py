"""
Unit Tests for the notification dispatcher and mail rendering
"""
import asyncio
from unittest.mock import AsyncMock, patch

from app.models.complaint import ComplaintStatus
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import ComplaintCreatedPayload, ComplaintStatusChangedPayload
from app.services.email_service import (
    CLOSING_LINE,
    EmailService,
    OutgoingMail,
    build_complaint_created_mail,
    build_status_changed_mail,
)
from app.services.notification_service import NotificationService


def _created_payload(**overrides):
    data = dict(
        complaint_id="c1",
        registration_number="REG-20240115-A1B2C3",
        applicant_name="Budi Santoso",
        service_name="Permohonan KTP",
        status=ComplaintStatus.PENDING,
    )
    data.update(overrides)
    return ComplaintCreatedPayload(**data)


def _changed_payload():
    return ComplaintStatusChangedPayload(
        complaint_id="c1",
        registration_number="REG-20240115-A1B2C3",
        applicant_name="Budi Santoso",
        service_name="Permohonan KTP",
        old_status=ComplaintStatus.PENDING,
        new_status=ComplaintStatus.APPROVED,
    )


def _recipient():
    return User(id="3f1c7a0e-5b2d-4e8f-9a6b-1c2d3e4f5a6b", name="Budi", email="budi@example.com")


class TestMailTemplates:
    def test_created_mail(self):
        mail = build_complaint_created_mail(
            to_email="budi@example.com",
            recipient_name="Budi",
            registration_number="REG-20240115-A1B2C3",
            applicant_name="Budi Santoso",
            service_name="Permohonan KTP",
            status="pending",
        )

        assert mail.subject == "Pengaduan Anda Berhasil Diterima - #REG-20240115-A1B2C3"
        assert "Nomor Registrasi: REG-20240115-A1B2C3" in mail.text_content
        assert "Layanan: Permohonan KTP" in mail.text_content
        assert "Status: Pending" in mail.text_content
        assert "track-complaint?registration_number=REG-20240115-A1B2C3" in mail.text_content
        assert CLOSING_LINE in mail.html_content

    def test_status_changed_mail_shows_both_statuses(self):
        mail = build_status_changed_mail(
            to_email="budi@example.com",
            recipient_name="Budi",
            registration_number="REG-20240115-A1B2C3",
            applicant_name="Budi Santoso",
            service_name=None,
            old_status="pending",
            new_status="approved",
        )

        assert mail.subject == "Status Pengaduan Anda Telah Diperbarui - #REG-20240115-A1B2C3"
        assert "Status Lama: Pending" in mail.text_content
        assert "Status Baru: Approved" in mail.text_content
        assert "Layanan: -" in mail.text_content

    def test_html_escapes_user_input(self):
        mail = build_complaint_created_mail(
            to_email="budi@example.com",
            recipient_name="<b>Budi</b>",
            registration_number="REG-20240115-A1B2C3",
            applicant_name="<script>alert(1)</script>",
            service_name="KTP",
            status="pending",
        )

        assert "<script>" not in mail.html_content
        assert "&lt;script&gt;" in mail.html_content


class TestDispatcher:
    def test_record_stores_type_tag_and_data(self):
        service = NotificationService(mailer=AsyncMock())
        added = []

        class FakeSession:
            def add(self, obj):
                added.append(obj)

        notification = service.record(FakeSession(), _recipient(), _changed_payload())

        assert added == [notification]
        assert isinstance(notification, Notification)
        assert notification.type == "ComplaintStatusChanged"
        assert notification.user_id == "3f1c7a0e-5b2d-4e8f-9a6b-1c2d3e4f5a6b"
        assert notification.data["new_status"] == "approved"
        assert "kind" not in notification.data

    def test_build_mail_picks_template_by_payload(self):
        service = NotificationService(mailer=AsyncMock())

        created = service.build_mail(_recipient(), _created_payload())
        changed = service.build_mail(_recipient(), _changed_payload())

        assert created.subject.startswith("Pengaduan Anda Berhasil Diterima")
        assert changed.subject.startswith("Status Pengaduan Anda Telah Diperbarui")
        assert created.to_email == changed.to_email == "budi@example.com"

    async def test_schedule_delivers_in_background(self):
        mailer = AsyncMock()
        mailer.send_mail.return_value = True
        service = NotificationService(mailer=mailer)
        mail = OutgoingMail("budi@example.com", "Subjek", "<p>isi</p>", "isi")

        service.schedule(mail)
        await asyncio.gather(*list(service._tasks))

        mailer.send_mail.assert_awaited_once_with(mail)

    async def test_delivery_failure_is_swallowed(self):
        mailer = AsyncMock()
        mailer.send_mail.side_effect = ConnectionError("smtp down")
        service = NotificationService(mailer=mailer)

        sent = await service.deliver(OutgoingMail("budi@example.com", "Subjek", "<p>isi</p>", "isi"))

        assert sent is False

    async def test_unconfigured_mailer_skips_sending(self):
        mailer = EmailService()
        mailer.smtp_user = ""

        with patch("app.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
            sent = await mailer.send_email("budi@example.com", "Subjek", "<p>isi</p>")

        assert sent is False
        send.assert_not_awaited()

    async def test_smtp_error_returns_false(self):
        mailer = EmailService()
        mailer.smtp_user = "portal"
        mailer.smtp_password = "secret"

        with patch("app.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
            send.side_effect = OSError("connection refused")
            sent = await mailer.send_email("budi@example.com", "Subjek", "<p>isi</p>", "isi")

        assert sent is False
        send.assert_awaited_once()


class TestInbox:
    async def test_scoped_to_recipient(self, db_session, test_user, other_user):
        service = NotificationService(mailer=AsyncMock())
        for _ in range(3):
            service.record(db_session, test_user, _created_payload())
        service.record(db_session, other_user, _created_payload())
        await db_session.commit()

        items, total = await service.list_for_user(db_session, test_user.id, page=1, per_page=2)
        assert total == 3
        assert len(items) == 2
        assert await service.unread_count(db_session, test_user.id) == 3

        marked = await service.mark_all_as_read(db_session, test_user.id)
        assert marked == 3
        assert await service.unread_count(db_session, test_user.id) == 0
        assert await service.unread_count(db_session, other_user.id) == 1
