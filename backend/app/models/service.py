"""
Service catalog model - the public services a complaint can be filed against
"""

from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Service(Base):
    """
    A public service offered by the regency (e.g. "Permohonan KTP").

    required_documents is an ordered list of document labels shown to the
    applicant; it is informational and not checked against uploads.
    """
    __tablename__ = "services"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    required_documents = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    complaints = relationship("Complaint", back_populates="service")

    def __repr__(self):
        return f"<Service {self.name}>"
