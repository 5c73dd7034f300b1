"""
Complaint Endpoints

- POST /complaints - submit (multipart, files under `documents` or `documents[]`)
- GET /complaints - list, own complaints only unless admin
- GET /complaints/{complaint_id} - detail, owner or admin
- POST /complaints/track - public lookup by registration number
- PUT /complaints/{complaint_id}/status - admin status change (JSON or multipart)
- GET /complaints-statistics - admin counters
- GET /complaints/{complaint_id}/documents/{document_id}/download
- GET /complaints/{complaint_id}/result/download
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.core.rate_limiter import rate_limit, TRACK_LIMIT
from app.models.complaint import ComplaintStatus
from app.models.user import User
from app.modules.auth.access import Requester
from app.modules.auth.dependencies import get_current_admin, get_current_user, get_requester, get_admin_requester
from app.schemas.common import MAX_PAGE, Page, success_response
from app.schemas.complaint import (
    ComplaintDetail,
    ComplaintSummary,
    ComplaintTrackRequest,
    ComplaintTrackingResponse,
)
from app.services.complaint_service import complaint_service
from app.services.storage_service import IncomingFile

router = APIRouter(tags=["Complaints"])

DOCUMENT_FIELDS = ("documents", "documents[]")


async def _to_incoming(upload: UploadFile) -> IncomingFile:
    content = await upload.read()
    await upload.close()
    return IncomingFile(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        content=content,
    )


def _is_file(value: Any) -> bool:
    # Browsers send an empty part for an untouched file input
    return isinstance(value, UploadFile) and bool(value.filename)


async def _read_body(request: Request, file_fields: Tuple[str, ...]) -> Tuple[Dict[str, Any], Dict[str, List[IncomingFile]]]:
    """
    Text fields and uploaded files from a multipart/urlencoded or JSON body.
    JSON bodies carry no files.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError.single("body", "The request body must be valid JSON.")
        if not isinstance(payload, dict):
            raise ValidationError.single("body", "The request body must be a JSON object.")
        return payload, {}

    form = await request.form()
    raw = {key: value for key, value in form.items() if isinstance(value, str)}
    files: Dict[str, List[IncomingFile]] = {}
    for field in file_fields:
        uploads = [value for value in form.getlist(field) if _is_file(value)]
        if uploads:
            files[field] = [await _to_incoming(upload) for upload in uploads]
    return raw, files


@router.post("/complaints", status_code=status.HTTP_201_CREATED)
async def submit_complaint(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    raw, files = await _read_body(request, DOCUMENT_FIELDS)
    documents = [f for field in DOCUMENT_FIELDS for f in files.get(field, [])]

    complaint = await complaint_service.submit_complaint(db, current_user, raw, documents)
    return success_response(ComplaintDetail.model_validate(complaint), message="Complaint submitted successfully")


@router.get("/complaints")
async def list_complaints(
    status_filter: Optional[ComplaintStatus] = Query(None, alias="status"),
    service_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    per_page = settings.COMPLAINTS_PAGE_SIZE
    complaints, total = await complaint_service.list_complaints(
        db,
        requester,
        status=status_filter,
        service_id=service_id,
        search=search,
        page=page,
        per_page=per_page,
    )
    items = [ComplaintSummary.model_validate(c) for c in complaints]
    return success_response(Page.build(items, total, page, per_page))


@router.post("/complaints/track")
@rate_limit(TRACK_LIMIT)
async def track_complaint(
    request: Request,
    body: ComplaintTrackRequest,
    db: AsyncSession = Depends(get_db)
):
    complaint = await complaint_service.track(db, body.registration_number)
    return success_response(ComplaintTrackingResponse.model_validate(complaint))


@router.get("/complaints-statistics")
async def complaint_statistics(
    requester: Requester = Depends(get_admin_requester),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await complaint_service.statistics(db))


@router.get("/complaints/{complaint_id}")
async def get_complaint(
    complaint_id: str,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    complaint = await complaint_service.get_for_requester(db, requester, complaint_id)
    return success_response(ComplaintDetail.model_validate(complaint))


@router.put("/complaints/{complaint_id}/status")
async def update_complaint_status(
    complaint_id: str,
    request: Request,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    raw, files = await _read_body(request, ("result_document",))
    result_files = files.get("result_document", [])

    complaint = await complaint_service.update_status(
        db, admin, complaint_id, raw, result_files[0] if result_files else None
    )
    return success_response(ComplaintDetail.model_validate(complaint), message="Complaint status updated successfully")


@router.get("/complaints/{complaint_id}/documents/{document_id}/download")
async def download_document(
    complaint_id: str,
    document_id: str,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    target = await complaint_service.document_download(db, requester, complaint_id, document_id)
    return FileResponse(target.path, filename=target.filename, media_type=target.media_type)


@router.get("/complaints/{complaint_id}/result/download")
async def download_result(
    complaint_id: str,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db)
):
    target = await complaint_service.result_download(db, requester, complaint_id)
    return FileResponse(target.path, filename=target.filename, media_type=target.media_type)
