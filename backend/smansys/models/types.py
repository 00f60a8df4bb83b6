"""
DB types that work on both SQLite (for local testing) and PostgreSQL.
All timestamps are UTC; SQLite has no timezone support, so values are stored naive-UTC there.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, TypeDecorator


class UuidType(TypeDecorator):
    """UUID stored as string(36) so it works on SQLite and PostgreSQL."""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class UtcDateTime(TypeDecorator):
    """Timezone-aware UTC datetime. Naive input is taken as UTC; results are always aware."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
