"""Custom SQLAlchemy column types shared by the portal models"""
from sqlalchemy import TypeDecorator, String
import uuid


def generate_uuid() -> str:
    """Primary key default for every table"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """
    UUID primary/foreign key stored as VARCHAR(36).

    The same column type works on SQLite (tests, local dev) and PostgreSQL,
    and values always come back as plain strings so ids can be compared with
    path parameters and token subjects without conversion.
    """
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return str(value)
        # Normalise user-supplied ids; malformed ones simply match nothing
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            return str(value)

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value
