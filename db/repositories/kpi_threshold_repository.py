"""
db/repositories/kpi_threshold_repository.py

Persistence layer for per-tenant KPI thresholds.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.kpi_threshold import AlertPriority, KPIThreshold, ThresholdDirection
from db.models.kpi_threshold import THRESHOLD_NATURAL_KEY_CONSTRAINT, KPIThresholdRecord

_MUTABLE_COLUMNS: tuple[str, ...] = (
    "target_value",
    "warning_threshold",
    "failure_threshold",
    "threshold_type",
    "alert_priority",
    "alert_frequency",
)


class KPIThresholdRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_tenant(self, tenant_id: str) -> list[KPIThreshold]:
        stmt = (
            select(KPIThresholdRecord)
            .where(KPIThresholdRecord.tenant_id == tenant_id)
            .order_by(KPIThresholdRecord.kpi_key)
        )
        records = (await self._session.scalars(stmt)).all()
        return [_to_threshold(record) for record in records]

    async def upsert_many(self, thresholds: Sequence[KPIThreshold]) -> int:
        """
        Upsert keyed on ``(tenant_id, kpi_key)``; the last duplicate in the
        call wins.
        """
        if not thresholds:
            return 0

        unique: dict[tuple[str, str], KPIThreshold] = {}
        for threshold in thresholds:
            unique[threshold.natural_key] = threshold

        stmt = insert(KPIThresholdRecord).values([item.to_dict() for item in unique.values()])
        stmt = stmt.on_conflict_do_update(
            constraint=THRESHOLD_NATURAL_KEY_CONSTRAINT,
            set_={column: stmt.excluded[column] for column in _MUTABLE_COLUMNS},
        ).returning(KPIThresholdRecord.id)
        return len((await self._session.scalars(stmt)).all())


def _to_threshold(record: KPIThresholdRecord) -> KPIThreshold:
    return KPIThreshold(
        tenant_id=record.tenant_id,
        kpi_key=record.kpi_key,
        target_value=record.target_value,
        warning_threshold=record.warning_threshold,
        failure_threshold=record.failure_threshold,
        threshold_type=ThresholdDirection(record.threshold_type),
        alert_priority=AlertPriority(record.alert_priority),
        alert_frequency=record.alert_frequency,
    )
