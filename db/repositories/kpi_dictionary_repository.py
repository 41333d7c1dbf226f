"""
db/repositories/kpi_dictionary_repository.py

Persistence layer for metric dictionary entries.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.kpi_upload import KPIDefinition
from db.models.kpi_definition import KPI_KEY_CONSTRAINT, KPIDefinitionRecord

_DESCRIPTIVE_COLUMNS: tuple[str, ...] = (
    "kpi_name",
    "description",
    "formula",
    "input_metrics",
    "owner",
    "business_goal_relation",
    "north_star_alignment",
)


class KPIDictionaryRepository:
    """
    Reads and upserts ``kpi_dictionary`` rows keyed by ``kpi_key``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_definitions(self, keys: Sequence[str] | None = None) -> list[KPIDefinition]:
        """
        Return dictionary entries ordered by key, optionally filtered to ``keys``.
        """
        stmt = select(KPIDefinitionRecord).order_by(KPIDefinitionRecord.kpi_key)
        if keys:
            stmt = stmt.where(KPIDefinitionRecord.kpi_key.in_(list(keys)))

        records = (await self._session.scalars(stmt)).all()
        return [_to_definition(record) for record in records]

    async def upsert_definition(self, definition: KPIDefinition) -> None:
        """
        Insert ``definition`` or overwrite the descriptive columns of an
        existing row with the same ``kpi_key``.
        """
        payload = definition.to_dict()
        stmt = insert(KPIDefinitionRecord).values(**payload)
        stmt = stmt.on_conflict_do_update(
            constraint=KPI_KEY_CONSTRAINT,
            set_={column: stmt.excluded[column] for column in _DESCRIPTIVE_COLUMNS},
        )
        await self._session.execute(stmt)


def _to_definition(record: KPIDefinitionRecord) -> KPIDefinition:
    return KPIDefinition(
        kpi_key=record.kpi_key,
        kpi_name=record.kpi_name,
        description=record.description,
        formula=record.formula,
        input_metrics=record.input_metrics,
        owner=record.owner,
        business_goal_relation=record.business_goal_relation,
        north_star_alignment=record.north_star_alignment,
    )
