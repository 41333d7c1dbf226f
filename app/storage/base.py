"""
Storage layer interface for the KPI vault.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date

from app.domain.kpi_threshold import KPIThreshold
from app.domain.kpi_upload import FactRecord, KPIDefinition, UploadLogEntry


class KPIStore(ABC):
    """
    Raw vault operations. Implementations raise on failure; retry and
    fallback policy belongs to the caller.
    """

    @abstractmethod
    async def list_definitions(self, keys: Sequence[str] | None = None) -> list[KPIDefinition]:
        """
        Return dictionary entries, optionally restricted to ``keys``.
        """

    @abstractmethod
    async def upsert_definition(self, definition: KPIDefinition) -> None:
        """
        Insert or overwrite one dictionary entry keyed by ``kpi_key``.
        """

    @abstractmethod
    async def bulk_upsert_facts(self, facts: Sequence[FactRecord]) -> int:
        """
        Upsert facts keyed by ``(tenant_id, site_id, kpi_date)``.
        """

    @abstractmethod
    async def append_upload_log(self, entry: UploadLogEntry) -> None:
        ...

    @abstractmethod
    async def list_template_headers(self) -> list[str]:
        ...

    @abstractmethod
    async def list_tenants(self) -> list[str]:
        ...

    @abstractmethod
    async def list_facts(self, tenant_id: str, since: date | None = None) -> list[FactRecord]:
        ...

    @abstractmethod
    async def list_upload_log(self, limit: int = 20) -> list[UploadLogEntry]:
        ...

    @abstractmethod
    async def list_thresholds(self, tenant_id: str) -> list[KPIThreshold]:
        ...

    @abstractmethod
    async def upsert_thresholds(self, thresholds: Sequence[KPIThreshold]) -> int:
        """
        Upsert thresholds keyed by ``(tenant_id, kpi_key)``.
        """
