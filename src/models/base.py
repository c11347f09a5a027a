"""
Base model class for all database models.

Provides common functionality and fields for all models:
- Integer primary key
- Timestamp fields (created_at, updated_at)
- SQLAlchemy declarative base
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

# Create the declarative base for all models
Base = declarative_base()


def utc_now() -> datetime:
    """Timezone-aware replacement for the deprecated datetime.utcnow()."""
    return datetime.now(timezone.utc)


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    All models should inherit from this class to get:
    - id: Primary key
    - created_at: Timestamp when record was created
    - updated_at: Timestamp when record was last modified
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        if getattr(self, "id", None) is not None:
            return f"{class_name}(id={self.id})"
        return f"{class_name}()"
