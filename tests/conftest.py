"""
tests/conftest.py

Shared fixtures: an in-memory KPI store with scripted failures and a
recording sleep so retry/backoff tests never wait on a real clock.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

import pytest

from app.domain.kpi_threshold import KPIThreshold
from app.domain.kpi_upload import (
    DEFAULT_TEMPLATE_HEADERS,
    FactRecord,
    KPIDefinition,
    UploadLogEntry,
)
from app.services.fact_upload_service import FactUploader
from app.services.kpi_upload_workflow import KPIUploadWorkflow
from app.services.kpi_vault_service import KPIVaultService
from app.storage.base import KPIStore


class InMemoryKPIStore(KPIStore):
    """
    Dict-backed store with the same upsert semantics as the SQL store.

    ``fail(operation, *errors)`` queues outcomes for the next calls of
    ``operation``: an exception is raised, ``None`` lets the call through.
    """

    def __init__(self) -> None:
        self.definitions: dict[str, KPIDefinition] = {}
        self.facts: dict[tuple[str, str | None, str], FactRecord] = {}
        self.upload_log: list[UploadLogEntry] = []
        self.template_headers: list[str] = list(DEFAULT_TEMPLATE_HEADERS)
        self.thresholds: dict[tuple[str, str], KPIThreshold] = {}
        self.calls: dict[str, int] = {}
        self.fact_batches: list[int] = []
        self._failures: dict[str, list[Exception | None]] = {}

    def fail(self, operation: str, *errors: Exception | None) -> None:
        self._failures.setdefault(operation, []).extend(errors)

    def _enter(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        queue = self._failures.get(operation)
        if queue:
            error = queue.pop(0)
            if error is not None:
                raise error

    async def list_definitions(self, keys: Sequence[str] | None = None) -> list[KPIDefinition]:
        self._enter("list_definitions")
        definitions = sorted(self.definitions.values(), key=lambda item: item.kpi_key)
        if keys is None:
            return definitions
        wanted = set(keys)
        return [definition for definition in definitions if definition.kpi_key in wanted]

    async def upsert_definition(self, definition: KPIDefinition) -> None:
        self._enter("upsert_definition")
        self.definitions[definition.kpi_key] = definition

    async def bulk_upsert_facts(self, facts: Sequence[FactRecord]) -> int:
        self.fact_batches.append(len(facts))
        self._enter("bulk_upsert_facts")
        for fact in facts:
            self.facts[fact.natural_key] = fact
        return len(facts)

    async def append_upload_log(self, entry: UploadLogEntry) -> None:
        self._enter("append_upload_log")
        self.upload_log.append(entry)

    async def list_template_headers(self) -> list[str]:
        self._enter("list_template_headers")
        return list(self.template_headers)

    async def list_tenants(self) -> list[str]:
        self._enter("list_tenants")
        return [tenant for tenant, _, _ in self.facts]

    async def list_facts(self, tenant_id: str, since: date | None = None) -> list[FactRecord]:
        self._enter("list_facts")
        facts = [
            fact
            for fact in self.facts.values()
            if fact.tenant_id == tenant_id
            and (since is None or date.fromisoformat(fact.kpi_date) >= since)
        ]
        return sorted(facts, key=lambda fact: fact.kpi_date)

    async def list_upload_log(self, limit: int = 20) -> list[UploadLogEntry]:
        self._enter("list_upload_log")
        return list(reversed(self.upload_log))[:limit]

    async def list_thresholds(self, tenant_id: str) -> list[KPIThreshold]:
        self._enter("list_thresholds")
        return sorted(
            (threshold for threshold in self.thresholds.values() if threshold.tenant_id == tenant_id),
            key=lambda threshold: threshold.kpi_key,
        )

    async def upsert_thresholds(self, thresholds: Sequence[KPIThreshold]) -> int:
        self._enter("upsert_thresholds")
        for threshold in thresholds:
            self.thresholds[threshold.natural_key] = threshold
        return len(thresholds)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def store() -> InMemoryKPIStore:
    return InMemoryKPIStore()


@pytest.fixture()
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def vault(store: InMemoryKPIStore, sleeper: RecordingSleep) -> KPIVaultService:
    return KPIVaultService(store=store, attempts=2, timeout_ms=1000, sleep=sleeper)


@pytest.fixture()
def make_workflow(vault: KPIVaultService, sleeper: RecordingSleep):
    """Factory for workflows wired to the in-memory vault."""

    def _make(*, batch_size: int = 50, batch_retries: int = 1, on_complete=None) -> KPIUploadWorkflow:
        return KPIUploadWorkflow(
            vault=vault,
            uploader=FactUploader(
                vault=vault,
                batch_size=batch_size,
                batch_retries=batch_retries,
                sleep=sleeper,
            ),
            on_complete=on_complete,
        )

    return _make
