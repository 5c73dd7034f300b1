"""
Service catalog schemas - request/response models for the public service list
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


def _clean_labels(v):
    if v is None:
        return v
    return [label.strip() for label in v if label and label.strip()]


class ServiceCreate(BaseModel):
    """Schema for creating a service (admin only)"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, max_length=100)
    required_documents: List[str] = Field(default_factory=list, description="Ordered document labels")
    is_active: bool = True

    @field_validator('required_documents')
    @classmethod
    def strip_labels(cls, v):
        return _clean_labels(v)


class ServiceUpdate(BaseModel):
    """Partial update; omitted fields keep their value"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, max_length=100)
    required_documents: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator('required_documents')
    @classmethod
    def strip_labels(cls, v):
        return _clean_labels(v)


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: str
    category: Optional[str] = None
    required_documents: List[str] = []
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceBrief(BaseModel):
    """Service as embedded in complaint responses"""
    id: str
    name: str
    category: Optional[str] = None
    required_documents: List[str] = []

    class Config:
        from_attributes = True
