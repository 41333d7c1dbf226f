"""
db/repositories/kpi_fact_repository.py

Persistence layer for daily KPI facts.

All methods are transaction-safe. The caller controls commit/rollback;
this repository never commits on its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.kpi_upload import FactRecord
from db.models.kpi_daily_fact import FACT_NATURAL_KEY_CONSTRAINT, KPIDailyFact


class KPIFactRepository:
    """
    Repository for writing and querying ``kpi_daily_facts`` rows.

    Upsert semantics: a fact whose ``(tenant_id, site_id, kpi_date)`` already
    exists replaces ``kpis`` and ``source`` instead of raising a
    duplicate-key error, so resubmitting the same batch is a no-op beyond
    the first write.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def bulk_upsert(self, facts: Sequence[FactRecord]) -> int:
        """
        Upsert ``facts`` in one statement and return the number of rows written.

        Facts sharing a natural key within the call are collapsed before
        hitting the database; the last occurrence wins.
        """
        if not facts:
            return 0

        payloads = [_to_payload(fact) for fact in _deduplicate(facts)]
        stmt = insert(KPIDailyFact).values(payloads)
        stmt = stmt.on_conflict_do_update(
            constraint=FACT_NATURAL_KEY_CONSTRAINT,
            set_={
                "kpis": stmt.excluded.kpis,
                "source": stmt.excluded.source,
            },
        ).returning(KPIDailyFact.id)
        return len((await self._session.scalars(stmt)).all())

    async def list_tenants(self) -> list[str]:
        stmt = select(KPIDailyFact.tenant_id).distinct().order_by(KPIDailyFact.tenant_id)
        return list((await self._session.scalars(stmt)).all())

    async def list_facts(
        self,
        *,
        tenant_id: str,
        since: date | None = None,
    ) -> list[FactRecord]:
        """
        Return a tenant's facts ordered by ``kpi_date`` ascending.

        Pass ``since`` to keep only facts dated on or after it.
        """
        stmt = (
            select(KPIDailyFact)
            .where(KPIDailyFact.tenant_id == tenant_id)
            .order_by(KPIDailyFact.kpi_date, KPIDailyFact.site_id)
        )
        if since is not None:
            stmt = stmt.where(KPIDailyFact.kpi_date >= since)

        rows = (await self._session.scalars(stmt)).all()
        return [
            FactRecord(
                tenant_id=row.tenant_id,
                site_id=row.site_id,
                kpi_date=row.kpi_date.isoformat(),
                kpis={key: float(value) for key, value in row.kpis.items()},
                source=row.source,
            )
            for row in rows
        ]


def _deduplicate(facts: Sequence[FactRecord]) -> list[FactRecord]:
    """Last-write-wins deduplication keyed on (tenant_id, site_id, kpi_date)."""
    seen: dict[tuple[str, str | None, str], FactRecord] = {}
    for fact in facts:
        seen[fact.natural_key] = fact
    return list(seen.values())


def _to_payload(fact: FactRecord) -> dict[str, Any]:
    return {
        "tenant_id": fact.tenant_id,
        "site_id": fact.site_id,
        "kpi_date": date.fromisoformat(fact.kpi_date),
        "source": fact.source,
        "kpis": dict(fact.kpis),
    }
