"""
SQLAlchemy-backed implementation of the KPI vault store.

Every operation runs in its own session; writes commit before returning.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.kpi_threshold import KPIThreshold
from app.domain.kpi_upload import FactRecord, KPIDefinition, UploadLogEntry
from app.storage.base import KPIStore
from db.repositories.errors import (
    DictionaryStoreError,
    FactStoreError,
    TemplateHeaderStoreError,
    ThresholdStoreError,
    UploadLogStoreError,
)
from db.repositories.kpi_dictionary_repository import KPIDictionaryRepository
from db.repositories.kpi_fact_repository import KPIFactRepository
from db.repositories.kpi_threshold_repository import KPIThresholdRepository
from db.repositories.template_header_repository import TemplateHeaderRepository
from db.repositories.upload_log_repository import UploadLogRepository


class SQLAlchemyKPIStore(KPIStore):
    """
    Persist and read vault data through the repositories.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from db.session import get_session_factory

            self._session_factory = get_session_factory()
        else:
            self._session_factory = session_factory

    async def list_definitions(self, keys: Sequence[str] | None = None) -> list[KPIDefinition]:
        try:
            async with self._session_factory() as session:
                return await KPIDictionaryRepository(session).list_definitions(keys)
        except SQLAlchemyError as exc:
            raise DictionaryStoreError("Failed to read the metric dictionary.") from exc

    async def upsert_definition(self, definition: KPIDefinition) -> None:
        async with self._session_factory() as session:
            try:
                await KPIDictionaryRepository(session).upsert_definition(definition)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise DictionaryStoreError(
                    f"Failed to save definition for '{definition.kpi_key}'."
                ) from exc

    async def bulk_upsert_facts(self, facts: Sequence[FactRecord]) -> int:
        if not facts:
            return 0

        async with self._session_factory() as session:
            try:
                written = await KPIFactRepository(session).bulk_upsert(facts)
                await session.commit()
                return written
            except SQLAlchemyError as exc:
                await session.rollback()
                raise FactStoreError("Failed to upsert KPI facts.") from exc

    async def append_upload_log(self, entry: UploadLogEntry) -> None:
        async with self._session_factory() as session:
            try:
                await UploadLogRepository(session).append(entry)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise UploadLogStoreError("Failed to append upload log entry.") from exc

    async def list_template_headers(self) -> list[str]:
        try:
            async with self._session_factory() as session:
                return await TemplateHeaderRepository(session).list_column_names()
        except SQLAlchemyError as exc:
            raise TemplateHeaderStoreError("Failed to read template headers.") from exc

    async def list_tenants(self) -> list[str]:
        try:
            async with self._session_factory() as session:
                return await KPIFactRepository(session).list_tenants()
        except SQLAlchemyError as exc:
            raise FactStoreError("Failed to list tenants.") from exc

    async def list_facts(self, tenant_id: str, since: date | None = None) -> list[FactRecord]:
        try:
            async with self._session_factory() as session:
                return await KPIFactRepository(session).list_facts(tenant_id=tenant_id, since=since)
        except SQLAlchemyError as exc:
            raise FactStoreError(f"Failed to read facts for tenant '{tenant_id}'.") from exc

    async def list_upload_log(self, limit: int = 20) -> list[UploadLogEntry]:
        try:
            async with self._session_factory() as session:
                return await UploadLogRepository(session).list_recent(limit=limit)
        except SQLAlchemyError as exc:
            raise UploadLogStoreError("Failed to read upload log.") from exc

    async def list_thresholds(self, tenant_id: str) -> list[KPIThreshold]:
        try:
            async with self._session_factory() as session:
                return await KPIThresholdRepository(session).list_for_tenant(tenant_id)
        except SQLAlchemyError as exc:
            raise ThresholdStoreError(f"Failed to read thresholds for tenant '{tenant_id}'.") from exc

    async def upsert_thresholds(self, thresholds: Sequence[KPIThreshold]) -> int:
        if not thresholds:
            return 0

        async with self._session_factory() as session:
            try:
                written = await KPIThresholdRepository(session).upsert_many(thresholds)
                await session.commit()
                return written
            except SQLAlchemyError as exc:
                await session.rollback()
                raise ThresholdStoreError("Failed to save KPI thresholds.") from exc
