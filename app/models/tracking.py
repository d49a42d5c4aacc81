"""
Audit, version and soft-delete columns shared by every catalog entity.

Rows are never physically removed: deletion stamps ``deleted_at`` and every
read path filters on ``not_deleted()``.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, func


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackedMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1, server_default="1")

    def touch(self) -> None:
        self.updated_at = utcnow()
        self.version = (self.version or 0) + 1

    @classmethod
    def not_deleted(cls):
        return cls.deleted_at.is_(None)

    @classmethod
    def soft_delete_values(cls) -> dict:
        """Column values for a bulk soft-delete UPDATE."""
        now = utcnow()
        return {"deleted_at": now, "updated_at": now, "version": cls.version + 1}
