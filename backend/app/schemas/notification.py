"""
Notification payloads.

A notification is a tagged variant: the `kind` field selects the payload
shape. The same tag is stored in Notification.type and the rest of the
payload in Notification.data.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from app.models.complaint import ComplaintStatus


COMPLAINT_CREATED = "ComplaintCreated"
COMPLAINT_STATUS_CHANGED = "ComplaintStatusChanged"


class ComplaintCreatedPayload(BaseModel):
    kind: Literal["ComplaintCreated"] = COMPLAINT_CREATED
    complaint_id: str
    registration_number: str
    applicant_name: str
    service_name: Optional[str] = None
    status: ComplaintStatus


class ComplaintStatusChangedPayload(BaseModel):
    kind: Literal["ComplaintStatusChanged"] = COMPLAINT_STATUS_CHANGED
    complaint_id: str
    registration_number: str
    applicant_name: str
    service_name: Optional[str] = None
    old_status: ComplaintStatus
    new_status: ComplaintStatus


NotificationPayload = Annotated[
    Union[ComplaintCreatedPayload, ComplaintStatusChangedPayload],
    Field(discriminator="kind"),
]

payload_adapter: TypeAdapter = TypeAdapter(NotificationPayload)


def payload_data(payload: Union[ComplaintCreatedPayload, ComplaintStatusChangedPayload]) -> Dict[str, Any]:
    """Stored form of a payload: everything but the tag"""
    return payload.model_dump(mode="json", exclude={"kind"})


def parse_payload(kind: str, data: Dict[str, Any]):
    """Rebuild the typed payload from a stored (type, data) pair"""
    return payload_adapter.validate_python({**data, "kind": kind})


class NotificationResponse(BaseModel):
    id: str
    type: str
    data: Dict[str, Any]
    read_at: Optional[datetime] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    count: int
