"""Base class for all database models."""

import uuid

from sqlalchemy import Column, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all models.

    Tables name themselves via ``__tablename__``. Timestamps are filled by the
    database, and ``updated_at`` is refreshed on every ORM flush and every Core
    ``update()`` that does not set it explicitly. Server generated values are
    fetched back on flush so new rows serialise without a refresh.
    """

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"
