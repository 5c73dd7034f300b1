"""
Response envelope and pagination shared by every endpoint.

Every JSON body is {"status": "success"|"error", "message"?, "data"?, "errors"?}.
"""

from math import ceil
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

# Keeps the OFFSET inside a 64-bit integer for any page size
MAX_PAGE = 100_000


class Page(BaseModel, Generic[T]):
    """Paginated collection"""
    current_page: int
    data: List[T]
    per_page: int
    total: int
    last_page: int

    @classmethod
    def build(cls, items: List[T], total: int, page: int, per_page: int) -> "Page[T]":
        return cls(
            current_page=page,
            data=items,
            per_page=per_page,
            total=total,
            last_page=max(1, ceil(total / per_page)) if per_page else 1,
        )


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Build the success envelope; pydantic models are dumped to JSON-safe dicts"""
    body: Dict[str, Any] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = _dump(data)
    return body


def error_fields(errors: List[Dict[str, Any]], skip_prefix: tuple = ("body", "query", "path", "form")) -> Dict[str, List[str]]:
    """
    Convert pydantic/FastAPI error lists into a field -> messages map.

    Location parts such as "body" are dropped and the rest joined with dots,
    so a nested error on `required_documents[2]` becomes "required_documents.2".
    """
    fields: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in skip_prefix:
            loc = loc[1:]
        key = ".".join(loc) or "body"
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(key, []).append(message)
    return fields
