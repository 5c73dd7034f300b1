"""
Complaint models

- Complaint: one row per submission, applicant data copied at submit time
- ComplaintDocument: files uploaded with the submission (immutable)
- ComplaintStatusHistory: append-only log of every status assignment
"""

from sqlalchemy import Column, String, DateTime, Date, Integer, ForeignKey, Enum as SQLEnum, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class ComplaintStatus(str, enum.Enum):
    """Complaint status. Any status may follow any other."""
    PENDING = "pending"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    REVISION = "revision"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ComplaintStatusHistory(Base):
    """One entry per status assignment, including the initial pending"""
    __tablename__ = "complaint_status_histories"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    complaint_id = Column(GUID, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id"), nullable=False)
    status = Column(SQLEnum(ComplaintStatus), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    complaint = relationship("Complaint", back_populates="status_histories")
    user = relationship("User")

    def __repr__(self):
        return f"<ComplaintStatusHistory {self.complaint_id} {self.status}>"


class ComplaintDocument(Base):
    """Supporting document attached at submission time"""
    __tablename__ = "complaint_documents"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    complaint_id = Column(GUID, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, index=True)
    document_name = Column(String(255), nullable=False)  # original client filename
    document_type = Column(String(100), nullable=False)  # declared MIME type
    file_path = Column(String(500), nullable=False)      # relative to STORAGE_DIR
    file_size = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    complaint = relationship("Complaint", back_populates="documents")

    def __repr__(self):
        return f"<ComplaintDocument {self.document_name}>"


class Complaint(Base):
    """Complaint filed by a citizen against a catalog service"""
    __tablename__ = "complaints"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    registration_number = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(GUID, ForeignKey("services.id"), nullable=False, index=True)

    # Applicant snapshot
    applicant_name = Column(String(255), nullable=False)
    applicant_nik = Column(String(16), nullable=False)
    applicant_address = Column(Text, nullable=False)
    applicant_phone = Column(String(20), nullable=True)
    applicant_job = Column(String(255), nullable=True)
    applicant_birth_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)

    status = Column(SQLEnum(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False, index=True)
    notes = Column(Text, nullable=True)              # latest admin note only
    result_document = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="complaints")
    service = relationship("Service", back_populates="complaints")
    documents = relationship(
        "ComplaintDocument",
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by=ComplaintDocument.created_at,
    )
    status_histories = relationship(
        "ComplaintStatusHistory",
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by=ComplaintStatusHistory.created_at.desc(),
    )

    __table_args__ = (
        Index("ix_complaints_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Complaint {self.registration_number} {self.status}>"
