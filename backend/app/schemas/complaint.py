"""
Complaint schemas - submission input, status update input and responses
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime

from app.models.complaint import ComplaintStatus
from app.schemas.service import ServiceBrief


# ============== Input ==============

class ComplaintSubmission(BaseModel):
    """Text fields of a complaint submission (files are validated separately)"""
    service_id: str = Field(..., min_length=1)
    applicant_name: str = Field(..., min_length=1, max_length=255)
    applicant_nik: str
    applicant_address: str = Field(..., min_length=1)
    applicant_phone: Optional[str] = Field(None, max_length=20)
    applicant_job: Optional[str] = Field(None, max_length=255)
    applicant_birth_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator('applicant_nik')
    @classmethod
    def nik_is_sixteen_digits(cls, v: str) -> str:
        v = v.strip()
        if len(v) != 16 or not v.isdigit():
            raise ValueError("The applicant nik must be exactly 16 digits.")
        return v

    @field_validator('applicant_name', 'applicant_address')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("This field is required.")
        return v.strip()


class ComplaintStatusUpdate(BaseModel):
    status: ComplaintStatus
    notes: Optional[str] = None


class ComplaintTrackRequest(BaseModel):
    registration_number: str = Field(..., min_length=1, max_length=32)

    @field_validator('registration_number')
    @classmethod
    def normalise(cls, v: str) -> str:
        return v.strip()


# ============== Output ==============

class UserBrief(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ComplaintDocumentResponse(BaseModel):
    id: str
    document_name: str
    document_type: str
    file_path: str
    file_size: int
    created_at: datetime

    class Config:
        from_attributes = True


class StatusHistoryResponse(BaseModel):
    id: str
    status: ComplaintStatus
    notes: Optional[str] = None
    user: Optional[UserBrief] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ComplaintBase(BaseModel):
    id: str
    registration_number: str
    service_id: str
    applicant_name: str
    applicant_nik: str
    applicant_address: str
    applicant_phone: Optional[str] = None
    applicant_job: Optional[str] = None
    applicant_birth_date: Optional[date] = None
    description: Optional[str] = None
    status: ComplaintStatus
    notes: Optional[str] = None
    result_document: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ComplaintSummary(ComplaintBase):
    """List item, with attachments so a row can link straight to its files"""
    user_id: str
    service: Optional[ServiceBrief] = None
    user: Optional[UserBrief] = None
    documents: List[ComplaintDocumentResponse] = []


class ComplaintDetail(ComplaintSummary):
    status_histories: List[StatusHistoryResponse] = []


class ComplaintTrackingResponse(ComplaintBase):
    """Public tracking view: no owner, no stored document paths"""
    service: Optional[ServiceBrief] = None
    status_histories: List[StatusHistoryResponse] = []


class ComplaintStatistics(BaseModel):
    total: int
    pending: int
    reviewing: int
    approved: int
    revision: int
    completed: int
    rejected: int
    this_month: int
    this_year: int
