from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from projectmaster.db.base import Base, TimestampMixin


class SyncRecord(Base, TimestampMixin):
    """One JSON document of a synced collection (users, projects, tasks, ...)."""

    __tablename__ = "sync_records"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
