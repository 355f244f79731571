"""Base model with common fields for all database models"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Uuid
from crewcommand.database import Base


def utc_now() -> datetime:
    """Timezone-aware current time for column defaults"""
    return datetime.now(timezone.utc)


class BaseModel(Base):
    """Abstract base model with common fields"""

    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"
