"""
db/repositories/upload_log_repository.py

Append-only persistence for CSV upload log entries.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.kpi_upload import UploadLogEntry, UploadStatus
from db.models.csv_upload_log import CSVUploadLog


class UploadLogRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: UploadLogEntry) -> None:
        self._session.add(
            CSVUploadLog(
                file_name=entry.file_name,
                rows_processed=entry.rows_processed,
                rows_failed=entry.rows_failed,
                status=entry.status.value,
                error_log=entry.error_log,
            )
        )
        await self._session.flush()

    async def list_recent(self, *, limit: int = 20) -> list[UploadLogEntry]:
        stmt = select(CSVUploadLog).order_by(CSVUploadLog.created_at.desc()).limit(max(1, limit))
        rows = (await self._session.scalars(stmt)).all()
        return [
            UploadLogEntry(
                file_name=row.file_name,
                rows_processed=row.rows_processed,
                rows_failed=row.rows_failed,
                status=UploadStatus(row.status),
                error_log=row.error_log,
            )
            for row in rows
        ]
