"""
db/repositories/template_header_repository.py

Read access to the core columns that open every CSV template.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models.csv_template_header import CSVTemplateHeader


class TemplateHeaderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_column_names(self) -> list[str]:
        stmt = select(CSVTemplateHeader.column_name).order_by(
            CSVTemplateHeader.position,
            CSVTemplateHeader.id,
        )
        return list((await self._session.scalars(stmt)).all())
