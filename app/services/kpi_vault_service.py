"""
app/services/kpi_vault_service.py

Gateway to the KPI vault used by the upload workflow and the API.

Read paths go through ``safe_query`` and degrade to empty/default values
when the store is unreachable. Write paths raise so the caller can surface
the failure. Upload logging is best-effort and never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, timedelta
from functools import lru_cache
from typing import TypeVar

from app.config import get_safe_query_settings
from app.domain.kpi_threshold import KPIThreshold
from app.domain.kpi_upload import (
    DEFAULT_TEMPLATE_HEADERS,
    FactRecord,
    KPIDefinition,
    UploadLogEntry,
)
from app.resilience import QueryResult, SleepFn, safe_query
from app.storage.base import KPIStore
from db.repositories.errors import KPIStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DictionaryUnavailableError(RuntimeError):
    """
    Raised when the metric dictionary cannot be read after retries.
    """


class KPIVaultService:
    """
    Applies retry, timeout and fallback policy on top of a ``KPIStore``.
    """

    def __init__(
        self,
        *,
        store: KPIStore,
        attempts: int = 2,
        timeout_ms: int = 12000,
        sleep: SleepFn | None = None,
    ) -> None:
        self._store = store
        self._attempts = max(1, attempts)
        self._timeout_ms = max(1, timeout_ms)
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Metric dictionary
    # ------------------------------------------------------------------

    async def get_kpi_dictionary(self, keys: Sequence[str] | None = None) -> list[KPIDefinition]:
        return await self._read(
            lambda: self._store.list_definitions(keys),
            [],
            "Get Dictionary",
        )

    async def get_known_metric_keys(self) -> set[str]:
        """
        Return every key in the dictionary.

        Unlike the other reads this does not degrade: an unreachable
        dictionary would make every uploaded column look undiscovered.
        """
        definitions = await self._read(
            lambda: self._store.list_definitions(None),
            None,
            "Get Dictionary Keys",
        )
        if definitions is None:
            raise DictionaryUnavailableError("Failed to connect to dictionary for KPI validation.")
        return {definition.kpi_key for definition in definitions}

    async def save_kpi_definition(self, definition: KPIDefinition) -> None:
        await self._store.upsert_definition(definition)

    # ------------------------------------------------------------------
    # Facts
    # ------------------------------------------------------------------

    async def bulk_ingest_facts(self, facts: Sequence[FactRecord]) -> None:
        await self._store.bulk_upsert_facts(facts)

    async def get_available_tenants(self) -> list[str]:
        tenants = await self._read(self._store.list_tenants, [], "Get Available Tenants")
        return sorted({tenant for tenant in tenants if tenant})

    async def get_tenant_facts(
        self,
        tenant_id: str,
        *,
        days: int | None = None,
        today: date | None = None,
    ) -> list[FactRecord]:
        """
        Return a tenant's facts, optionally limited to the trailing ``days``.
        """
        since = None
        if days is not None:
            since = (today or date.today()) - timedelta(days=max(0, days))
        return await self._read(
            lambda: self._store.list_facts(tenant_id, since),
            [],
            f"Get Facts for Tenant: {tenant_id}",
        )

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    async def get_tenant_thresholds(self, tenant_id: str) -> list[KPIThreshold]:
        return await self._read(
            lambda: self._store.list_thresholds(tenant_id),
            [],
            f"Get Thresholds for Tenant: {tenant_id}",
        )

    async def save_thresholds(self, thresholds: Sequence[KPIThreshold]) -> None:
        await self._store.upsert_thresholds(thresholds)

    # ------------------------------------------------------------------
    # Upload log / templates
    # ------------------------------------------------------------------

    async def log_upload(self, entry: UploadLogEntry) -> None:
        # Best-effort: the upload outcome must never hinge on the audit write.
        try:
            await self._store.append_upload_log(entry)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Non-critical upload log failure file=%r status=%s: %s",
                entry.file_name,
                entry.status.value,
                exc,
            )

    async def get_upload_history(self, limit: int = 20) -> list[UploadLogEntry]:
        return await self._read(
            lambda: self._store.list_upload_log(limit),
            [],
            "Get Upload History",
        )

    async def get_template_headers(self) -> list[str]:
        headers = await self._read(self._store.list_template_headers, [], "Get Template Headers")
        return list(headers) if headers else list(DEFAULT_TEMPLATE_HEADERS)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _read(
        self,
        fetch: Callable[[], Awaitable[T]],
        default: T,
        context: str,
    ) -> T:
        async def operation() -> QueryResult[T]:
            try:
                return QueryResult(data=await fetch())
            except KPIStoreError as exc:
                return QueryResult(error=exc)

        kwargs = {} if self._sleep is None else {"sleep": self._sleep}
        return await safe_query(
            operation,
            default,
            context,
            attempts=self._attempts,
            timeout_ms=self._timeout_ms,
            **kwargs,
        )


@lru_cache(maxsize=1)
def get_kpi_vault_service() -> KPIVaultService:
    """
    Build and cache the vault gateway with env-driven settings.
    """
    from app.storage.sqlalchemy_store import SQLAlchemyKPIStore

    settings = get_safe_query_settings()
    return KPIVaultService(
        store=SQLAlchemyKPIStore(),
        attempts=settings.attempts,
        timeout_ms=settings.timeout_ms,
    )
