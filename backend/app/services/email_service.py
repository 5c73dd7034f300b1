"""
Email Service for the complaint portal
======================================
Outbound mail for complaint notifications, sent over SMTP with aiosmtplib:
- Complaint received confirmation
- Complaint status changed

Mail is best effort. send_email never raises; it logs and returns False so
a mail outage cannot undo a complaint that is already committed.
"""

import aiosmtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional
from datetime import datetime

from app.core.config import settings
from app.core.logging_config import logger


CLOSING_LINE = "Terima kasih telah menggunakan layanan pengaduan Kabupaten Badung."


@dataclass
class OutgoingMail:
    """Fully rendered message, safe to hand to a background task"""
    to_email: str
    subject: str
    html_content: str
    text_content: str


def _status_label(status: str) -> str:
    return str(status).capitalize()


def _render_html(recipient_name: str, intro: str, rows: list, tracking_url: str) -> str:
    detail_rows = "\n".join(
        f"<tr><td style=\"padding: 4px 12px 4px 0; color: #6b7280;\">{escape(label)}</td>"
        f"<td style=\"padding: 4px 0; font-weight: 600;\">{escape(str(value))}</td></tr>"
        for label, value in rows
    )
    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #0f4c81; color: white; padding: 24px; text-align: center; border-radius: 10px 10px 0 0; }}
                .content {{ background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }}
                .button {{ display: inline-block; background: #0f4c81; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600; margin: 20px 0; }}
                .footer {{ text-align: center; margin-top: 30px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{escape(settings.APP_NAME)}</h1>
                </div>
                <div class="content">
                    <p>Halo {escape(recipient_name)},</p>
                    <p>{escape(intro)}</p>
                    <p><strong>Detail Pengaduan:</strong></p>
                    <table>
                        {detail_rows}
                    </table>
                    <p style="text-align: center;">
                        <a href="{escape(tracking_url)}" class="button">Lacak Pengaduan</a>
                    </p>
                    <p>{escape(CLOSING_LINE)}</p>
                </div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} {escape(settings.EMAIL_FROM_NAME)}</p>
                </div>
            </div>
        </body>
        </html>
        """


def _render_text(recipient_name: str, intro: str, rows: list, tracking_url: str) -> str:
    lines = [f"Halo {recipient_name},", "", intro, "", "Detail Pengaduan:"]
    lines.extend(f"{label}: {value}" for label, value in rows)
    lines.extend(["", f"Lacak Pengaduan: {tracking_url}", "", CLOSING_LINE])
    return "\n".join(lines)


def build_complaint_created_mail(
    to_email: str,
    recipient_name: str,
    registration_number: str,
    applicant_name: str,
    service_name: Optional[str],
    status: str,
) -> OutgoingMail:
    tracking_url = settings.get_tracking_url(registration_number)
    intro = "Pengaduan Anda telah berhasil diterima dan akan segera diproses."
    rows = [
        ("Nomor Registrasi", registration_number),
        ("Nama Pemohon", applicant_name),
        ("Layanan", service_name or "-"),
        ("Status", _status_label(status)),
    ]
    return OutgoingMail(
        to_email=to_email,
        subject=f"Pengaduan Anda Berhasil Diterima - #{registration_number}",
        html_content=_render_html(recipient_name, intro, rows, tracking_url),
        text_content=_render_text(recipient_name, intro, rows, tracking_url),
    )


def build_status_changed_mail(
    to_email: str,
    recipient_name: str,
    registration_number: str,
    applicant_name: str,
    service_name: Optional[str],
    old_status: str,
    new_status: str,
) -> OutgoingMail:
    tracking_url = settings.get_tracking_url(registration_number)
    intro = "Status pengaduan Anda telah diperbarui."
    rows = [
        ("Nomor Registrasi", registration_number),
        ("Nama Pemohon", applicant_name),
        ("Layanan", service_name or "-"),
        ("Status Lama", _status_label(old_status)),
        ("Status Baru", _status_label(new_status)),
    ]
    return OutgoingMail(
        to_email=to_email,
        subject=f"Status Pengaduan Anda Telah Diperbarui - #{registration_number}",
        html_content=_render_html(recipient_name, intro, rows, tracking_url),
        text_content=_render_text(recipient_name, intro, rows, tracking_url),
    )


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.start_tls = settings.SMTP_START_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer the HTML part
            if text_content:
                message.attach(MIMEText(text_content, "plain", "utf-8"))
            message.attach(MIMEText(html_content, "html", "utf-8"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.start_tls
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    async def send_mail(self, mail: OutgoingMail) -> bool:
        return await self.send_email(mail.to_email, mail.subject, mail.html_content, mail.text_content)


# Singleton instance
email_service = EmailService()
