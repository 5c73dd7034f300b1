"""
Complaint Service - submission, retrieval, tracking and status changes

Handles:
- Submission: validation, registration number, attachments, initial history
- Listing/retrieval scoped by the requester, public tracking
- Admin status updates with optional result document
- Statistics and download lookups

Mutations follow one order: rows are flushed, files are written, the
transaction commits, and only then is notification mail scheduled. A failed
file write rolls the transaction back and removes files already written.
"""

import mimetypes
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import (
    ComplaintNotFoundError,
    ConflictError,
    DocumentNotFoundError,
    ResourceNotFoundError,
    StoredFileMissingError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.complaint import (
    Complaint,
    ComplaintDocument,
    ComplaintStatus,
    ComplaintStatusHistory,
)
from app.models.service import Service
from app.models.user import User
from app.modules.auth.access import Requester, ensure_can_view_complaint, scope_complaints
from app.schemas.common import error_fields
from app.schemas.complaint import ComplaintStatistics, ComplaintStatusUpdate, ComplaintSubmission
from app.schemas.notification import ComplaintCreatedPayload, ComplaintStatusChangedPayload
from app.services.email_service import OutgoingMail
from app.services.notification_service import notification_service
from app.services.storage_service import IncomingFile, storage_service, validate_document


INITIAL_STATUS_NOTE = "Pengaduan telah diterima dan menunggu verifikasi"
DEFAULT_STATUS_NOTE = "Status updated by admin"

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

OPTIONAL_TEXT_FIELDS = ("applicant_phone", "applicant_job", "applicant_birth_date", "description")


def make_registration_number(now: Optional[datetime] = None) -> str:
    """REG-YYYYMMDD-XXXXXX with a random [A-Z0-9] suffix (UTC date)"""
    now = now or datetime.utcnow()
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"REG-{now:%Y%m%d}-{suffix}"


def _blank_to_none(raw: Dict[str, Any], keys) -> Dict[str, Any]:
    cleaned = dict(raw)
    for key in keys:
        value = cleaned.get(key)
        if isinstance(value, str) and not value.strip():
            cleaned[key] = None
    return cleaned


def _merge(errors: Dict[str, List[str]], extra: Dict[str, List[str]]) -> None:
    for field, messages in extra.items():
        errors.setdefault(field, []).extend(messages)


@dataclass
class DownloadTarget:
    path: Path
    filename: str
    media_type: str


def detail_options():
    """Eager loads for the full complaint view (no lazy loads under asyncio)"""
    return (
        selectinload(Complaint.service),
        selectinload(Complaint.user),
        selectinload(Complaint.documents),
        selectinload(Complaint.status_histories).selectinload(ComplaintStatusHistory.user),
    )


class ComplaintService:
    """Service for complaint lifecycle operations"""

    # ==================== LOADING ====================

    async def load(self, db: AsyncSession, complaint_id: str) -> Complaint:
        result = await db.execute(
            select(Complaint)
            .where(Complaint.id == complaint_id)
            .options(*detail_options())
            .execution_options(populate_existing=True)
        )
        complaint = result.scalar_one_or_none()
        if not complaint:
            raise ComplaintNotFoundError(complaint_id)
        return complaint

    async def generate_registration_number(self, db: AsyncSession) -> str:
        """
        Draw suffixes until one is unused. The unique index on
        registration_number still guards against a concurrent duplicate.
        """
        for _ in range(settings.REGISTRATION_NUMBER_MAX_ATTEMPTS):
            candidate = make_registration_number()
            exists = await db.scalar(
                select(func.count(Complaint.id)).where(Complaint.registration_number == candidate)
            )
            if not exists:
                return candidate
        raise ConflictError("Could not allocate a registration number, please retry")

    # ==================== SUBMISSION ====================

    async def validate_submission(
        self,
        db: AsyncSession,
        raw: Dict[str, Any],
        files: List[IncomingFile]
    ) -> Tuple[ComplaintSubmission, Service]:
        """Check every field and file; raise one ValidationError listing all problems"""
        errors: Dict[str, List[str]] = {}
        submission: Optional[ComplaintSubmission] = None

        try:
            submission = ComplaintSubmission.model_validate(_blank_to_none(raw, OPTIONAL_TEXT_FIELDS))
        except PydanticValidationError as e:
            _merge(errors, error_fields(e.errors()))

        service = None
        service_id = raw.get("service_id")
        if service_id and "service_id" not in errors:
            service = await db.get(Service, str(service_id))
            if service is None:
                errors["service_id"] = ["The selected service id is invalid."]
            elif not service.is_active:
                errors["service_id"] = ["The selected service is not currently available."]

        for index, file in enumerate(files):
            problems = validate_document(file)
            if problems:
                errors[f"documents.{index}"] = problems

        if errors:
            raise ValidationError(errors)
        return submission, service

    async def submit_complaint(
        self,
        db: AsyncSession,
        submitter: User,
        raw: Dict[str, Any],
        files: List[IncomingFile]
    ) -> Complaint:
        submission, service = await self.validate_submission(db, raw, files)
        complaint = await self._insert_with_unique_number(db, dict(
            user_id=submitter.id,
            service_id=service.id,
            status=ComplaintStatus.PENDING,
            **submission.model_dump(exclude={"service_id"}),
        ))
        registration_number = complaint.registration_number

        planned: List[Tuple[str, IncomingFile]] = []
        for index, file in enumerate(files):
            path = storage_service.document_path(file, index)
            planned.append((path, file))
            db.add(ComplaintDocument(
                complaint_id=complaint.id,
                document_name=file.filename,
                document_type=file.content_type,
                file_path=path,
                file_size=file.size,
            ))

        db.add(ComplaintStatusHistory(
            complaint_id=complaint.id,
            user_id=submitter.id,
            status=ComplaintStatus.PENDING,
            notes=INITIAL_STATUS_NOTE,
        ))

        mail = notification_service.prepare(db, submitter, ComplaintCreatedPayload(
            complaint_id=str(complaint.id),
            registration_number=registration_number,
            applicant_name=complaint.applicant_name,
            service_name=service.name,
            status=ComplaintStatus.PENDING,
        ))

        await self._write_and_commit(db, planned)
        notification_service.schedule(mail)

        logger.log_complaint_event(
            "submitted",
            registration_number,
            complaint_id=str(complaint.id),
            document_count=len(files),
        )
        return await self.load(db, complaint.id)

    async def _insert_with_unique_number(self, db: AsyncSession, fields: Dict[str, Any]) -> Complaint:
        """
        Flush the complaint inside a savepoint. A concurrent request can take
        the same number between the lookup and the insert; the unique index
        rejects it and a fresh number is drawn.
        """
        for attempt in range(1, settings.REGISTRATION_NUMBER_MAX_ATTEMPTS + 1):
            complaint = Complaint(
                registration_number=await self.generate_registration_number(db),
                **fields,
            )
            try:
                async with db.begin_nested():
                    db.add(complaint)
                    await db.flush()
                return complaint
            except IntegrityError:
                logger.warning(
                    f"[Complaint] Registration number {complaint.registration_number} taken at insert "
                    f"(attempt {attempt}/{settings.REGISTRATION_NUMBER_MAX_ATTEMPTS})"
                )
        raise ConflictError("Could not allocate a registration number, please retry")

    async def _write_and_commit(self, db: AsyncSession, planned: List[Tuple[str, IncomingFile]]) -> None:
        await db.flush()
        written: List[str] = []
        try:
            for path, file in planned:
                await storage_service.write(path, file.content)
                written.append(path)
            await db.commit()
        except Exception:
            await db.rollback()
            await storage_service.delete_many(written)
            raise

    # ==================== RETRIEVAL ====================

    async def list_complaints(
        self,
        db: AsyncSession,
        requester: Requester,
        status: Optional[ComplaintStatus] = None,
        service_id: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 10
    ) -> Tuple[List[Complaint], int]:
        query = scope_complaints(select(Complaint), requester)
        if status:
            query = query.where(Complaint.status == status)
        if service_id:
            query = query.where(Complaint.service_id == service_id)
        if search:
            query = query.where(Complaint.registration_number.ilike(f"%{search.strip()}%"))

        total = await db.scalar(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.options(
                selectinload(Complaint.service),
                selectinload(Complaint.user),
                selectinload(Complaint.documents),
            )
            .order_by(Complaint.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total or 0

    async def get_for_requester(self, db: AsyncSession, requester: Requester, complaint_id: str) -> Complaint:
        complaint = await self.load(db, complaint_id)
        ensure_can_view_complaint(requester, complaint)
        return complaint

    async def track(self, db: AsyncSession, registration_number: str) -> Complaint:
        result = await db.execute(
            select(Complaint)
            .where(Complaint.registration_number == registration_number)
            .options(*detail_options())
        )
        complaint = result.scalar_one_or_none()
        if not complaint:
            raise ComplaintNotFoundError(registration_number)
        logger.log_complaint_event("tracked", registration_number)
        return complaint

    # ==================== STATUS UPDATE ====================

    async def update_status(
        self,
        db: AsyncSession,
        admin: User,
        complaint_id: str,
        raw: Dict[str, Any],
        result_file: Optional[IncomingFile] = None
    ) -> Complaint:
        """
        Assign a status (any status may follow any other), replace the note,
        optionally attach a result document, and log the change.
        The owner is notified only when the status actually changed.
        """
        complaint = await self.load(db, complaint_id)

        errors: Dict[str, List[str]] = {}
        update = None
        try:
            update = ComplaintStatusUpdate.model_validate(_blank_to_none(raw, ("notes",)))
        except PydanticValidationError as e:
            _merge(errors, error_fields(e.errors()))
        if result_file is not None:
            problems = validate_document(result_file)
            if problems:
                errors["result_document"] = problems
        if errors:
            raise ValidationError(errors)

        old_status = ComplaintStatus(complaint.status)
        new_status = update.status

        complaint.status = new_status
        complaint.notes = update.notes

        planned: List[Tuple[str, IncomingFile]] = []
        if result_file is not None:
            path = storage_service.result_path(result_file)
            planned.append((path, result_file))
            complaint.result_document = path

        db.add(ComplaintStatusHistory(
            complaint_id=complaint.id,
            user_id=admin.id,
            status=new_status,
            notes=update.notes or DEFAULT_STATUS_NOTE,
        ))

        mail: Optional[OutgoingMail] = None
        if old_status != new_status:
            mail = notification_service.prepare(db, complaint.user, ComplaintStatusChangedPayload(
                complaint_id=str(complaint.id),
                registration_number=complaint.registration_number,
                applicant_name=complaint.applicant_name,
                service_name=complaint.service.name if complaint.service else None,
                old_status=old_status,
                new_status=new_status,
            ))

        await self._write_and_commit(db, planned)
        if mail is not None:
            notification_service.schedule(mail)

        logger.log_complaint_event(
            "status_updated",
            complaint.registration_number,
            old_status=old_status.value,
            new_status=new_status.value,
            admin_id=str(admin.id),
            notified=mail is not None,
        )
        return await self.load(db, complaint.id)

    # ==================== STATISTICS ====================

    async def statistics(self, db: AsyncSession, now: Optional[datetime] = None) -> ComplaintStatistics:
        now = now or datetime.utcnow()
        month_start = datetime(now.year, now.month, 1)
        year_start = datetime(now.year, 1, 1)

        by_status = {status.value: 0 for status in ComplaintStatus}
        result = await db.execute(
            select(Complaint.status, func.count(Complaint.id)).group_by(Complaint.status)
        )
        for status, count in result.all():
            by_status[ComplaintStatus(status).value] = count

        this_month = await db.scalar(
            select(func.count(Complaint.id)).where(Complaint.created_at >= month_start)
        )
        this_year = await db.scalar(
            select(func.count(Complaint.id)).where(Complaint.created_at >= year_start)
        )

        return ComplaintStatistics(
            total=sum(by_status.values()),
            this_month=this_month or 0,
            this_year=this_year or 0,
            **by_status,
        )

    # ==================== DOWNLOADS ====================

    async def document_download(
        self,
        db: AsyncSession,
        requester: Requester,
        complaint_id: str,
        document_id: str
    ) -> DownloadTarget:
        complaint = await self.get_for_requester(db, requester, complaint_id)
        document = next((d for d in complaint.documents if str(d.id) == str(document_id)), None)
        if document is None:
            raise DocumentNotFoundError(document_id)
        if not storage_service.exists(document.file_path):
            raise StoredFileMissingError(document.file_path)
        return DownloadTarget(
            path=storage_service.resolve(document.file_path),
            filename=document.document_name,
            media_type=document.document_type or "application/octet-stream",
        )

    async def result_download(self, db: AsyncSession, requester: Requester, complaint_id: str) -> DownloadTarget:
        complaint = await self.get_for_requester(db, requester, complaint_id)
        if not complaint.result_document:
            raise ResourceNotFoundError(
                "Result document", complaint_id, message="Result document not available"
            )
        if not storage_service.exists(complaint.result_document):
            raise StoredFileMissingError(complaint.result_document)
        basename = Path(complaint.result_document).name
        return DownloadTarget(
            path=storage_service.resolve(complaint.result_document),
            filename=f"Result_{complaint.registration_number}_{basename}",
            media_type=mimetypes.guess_type(basename)[0] or "application/octet-stream",
        )


complaint_service = ComplaintService()
