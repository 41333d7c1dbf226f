"""
tests/test_kpi_vault_service.py

Pytest unit tests for the vault gateway's read fallbacks and write policy.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from app.domain.kpi_upload import FactRecord, KPIDefinition, UploadLogEntry, UploadStatus
from app.services.kpi_vault_service import DictionaryUnavailableError
from db.repositories.errors import (
    DictionaryStoreError,
    FactStoreError,
    UploadLogStoreError,
)


def _fact(tenant: str, day: str) -> FactRecord:
    return FactRecord(tenant_id=tenant, site_id=None, kpi_date=day, kpis={"sessions": 1.0})


class TestDictionaryReads:
    def test_filters_by_keys(self, store, vault) -> None:
        for key in ("sessions", "revenue", "churn"):
            store.definitions[key] = KPIDefinition.draft(key)

        result = asyncio.run(vault.get_kpi_dictionary(["revenue", "churn"]))

        assert [definition.kpi_key for definition in result] == ["churn", "revenue"]

    def test_unreachable_dictionary_degrades_to_empty(self, store, vault, sleeper) -> None:
        store.fail("list_definitions", DictionaryStoreError("down"), DictionaryStoreError("down"))

        assert asyncio.run(vault.get_kpi_dictionary()) == []
        assert store.calls["list_definitions"] == 2
        assert sleeper.delays == [1.0]

    def test_known_keys_recover_on_retry(self, store, vault) -> None:
        store.definitions["sessions"] = KPIDefinition.draft("sessions")
        store.fail("list_definitions", DictionaryStoreError("blip"))

        assert asyncio.run(vault.get_known_metric_keys()) == {"sessions"}

    def test_known_keys_raise_when_dictionary_is_unreachable(self, store, vault) -> None:
        store.fail("list_definitions", DictionaryStoreError("down"), DictionaryStoreError("down"))

        with pytest.raises(DictionaryUnavailableError, match="Failed to connect to dictionary"):
            asyncio.run(vault.get_known_metric_keys())


class TestWrites:
    def test_definition_save_failure_propagates(self, store, vault) -> None:
        store.fail("upsert_definition", DictionaryStoreError("permission denied"))

        with pytest.raises(DictionaryStoreError):
            asyncio.run(vault.save_kpi_definition(KPIDefinition.draft("sessions")))

    def test_fact_ingest_failure_propagates(self, store, vault) -> None:
        store.fail("bulk_upsert_facts", FactStoreError("down"))

        with pytest.raises(FactStoreError):
            asyncio.run(vault.bulk_ingest_facts([_fact("acme", "2024-01-01")]))

    def test_upload_log_failure_is_swallowed(self, store, vault, caplog) -> None:
        store.fail("append_upload_log", UploadLogStoreError("disk full"))
        entry = UploadLogEntry(file_name="a.csv", rows_processed=1, rows_failed=0, status=UploadStatus.SUCCESS)

        with caplog.at_level("WARNING"):
            asyncio.run(vault.log_upload(entry))

        assert store.upload_log == []
        assert "Non-critical upload log failure" in caplog.text


class TestFactReads:
    def test_tenants_are_distinct_and_sorted(self, store, vault) -> None:
        asyncio.run(
            vault.bulk_ingest_facts(
                [_fact("globex", "2024-01-01"), _fact("acme", "2024-01-01"), _fact("acme", "2024-01-02")]
            )
        )

        assert asyncio.run(vault.get_available_tenants()) == ["acme", "globex"]

    def test_tenant_facts_respect_trailing_window(self, store, vault) -> None:
        asyncio.run(
            vault.bulk_ingest_facts(
                [_fact("acme", "2024-01-01"), _fact("acme", "2024-01-25"), _fact("acme", "2024-01-31")]
            )
        )

        facts = asyncio.run(vault.get_tenant_facts("acme", days=7, today=date(2024, 1, 31)))

        assert [fact.kpi_date for fact in facts] == ["2024-01-25", "2024-01-31"]

    def test_upload_history_is_most_recent_first(self, store, vault) -> None:
        for name in ("first.csv", "second.csv"):
            asyncio.run(
                vault.log_upload(
                    UploadLogEntry(file_name=name, rows_processed=1, rows_failed=0, status=UploadStatus.SUCCESS)
                )
            )

        history = asyncio.run(vault.get_upload_history(limit=1))

        assert [entry.file_name for entry in history] == ["second.csv"]
