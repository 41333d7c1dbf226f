"""
db/models/csv_upload_log.py

Append-only audit trail of KPI CSV ingestion attempts.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin


class CSVUploadLog(Base, CreatedAtMixin):
    __tablename__ = "csv_upload_log"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    rows_processed: Mapped[int] = mapped_column(Integer, nullable=False)
    rows_failed: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Success, Partial, Failed",
    )
    error_log: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("ix_csv_upload_log_created_at", "created_at"),)
