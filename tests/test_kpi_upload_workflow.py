"""
tests/test_kpi_upload_workflow.py

Pytest unit tests for the upload state machine against the in-memory vault.

Coverage
--------
- Validation failures return to upload without touching the vault
- Undiscovered metric keys route through discovery
- Definition submission: coverage errors, save failures, success
- Ingest: success, idempotent re-ingest, partial failure, upload log
- Completion callback and step guards
"""

from __future__ import annotations

import asyncio

import pytest

from app.domain.kpi_upload import KPIDefinition, UploadStatus
from app.services.kpi_upload_workflow import DEFAULT_FILE_NAME, UploadStep, WorkflowStateError
from db.repositories.errors import DictionaryStoreError, FactStoreError

CLEAN_FILE = (
    "tenant_id,site_id,kpi_date,sessions,revenue\n"
    "acme,north,2024-01-01,120,99.5\n"
    "acme,north,2024-01-02,130,101\n"
)


@pytest.fixture()
def known_store(store):
    for key in ("sessions", "revenue"):
        store.definitions[key] = KPIDefinition.draft(key)
    return store


class TestLoad:
    def test_clean_file_becomes_ingest_ready(self, known_store, make_workflow) -> None:
        workflow = make_workflow()

        step = asyncio.run(workflow.load(file_name="jan.csv", text=CLEAN_FILE))

        assert step is UploadStep.VALIDATE
        assert workflow.target_tenant == "acme"
        assert len(workflow.rows) == 2
        assert workflow.errors == []
        assert workflow.file_name == "jan.csv"

    def test_blank_file_name_uses_default(self, known_store, make_workflow) -> None:
        workflow = make_workflow()

        asyncio.run(workflow.load(file_name="  ", text=CLEAN_FILE))

        assert workflow.file_name == DEFAULT_FILE_NAME

    def test_invalid_file_returns_to_upload_without_writes(self, known_store, make_workflow) -> None:
        workflow = make_workflow()

        step = asyncio.run(
            workflow.load(
                file_name="bad.csv",
                text="tenant_id,kpi_date,sessions\nacme,2024-01-01,1\nacme,2024-01-01,2\n",
            )
        )

        assert step is UploadStep.UPLOAD
        assert workflow.error_messages == ["Integrity Failure: Multiple entries detected for the same date."]
        assert known_store.facts == {}
        assert known_store.upload_log == []

    def test_structure_error_is_reported(self, store, make_workflow) -> None:
        workflow = make_workflow()

        asyncio.run(workflow.load(file_name="empty.csv", text="tenant_id,kpi_date\n"))

        assert workflow.step is UploadStep.UPLOAD
        assert workflow.error_messages == ["The file appears to be empty or contains only headers."]

    def test_new_metric_routes_to_discovery(self, known_store, make_workflow) -> None:
        workflow = make_workflow()

        step = asyncio.run(
            workflow.load(
                file_name="new.csv",
                text="tenant_id,kpi_date,sessions,new_metric\nacme,2024-01-01,1,2\n",
            )
        )

        assert step is UploadStep.DISCOVERY
        assert workflow.missing_kpis == ["new_metric"]
        assert [draft.kpi_name for draft in workflow.drafts] == ["new_metric"]
        assert known_store.facts == {}

    def test_empty_dictionary_routes_every_metric_to_discovery(self, store, make_workflow) -> None:
        workflow = make_workflow()

        step = asyncio.run(
            workflow.load(
                file_name="new.csv",
                text="tenant_id,kpi_date,new_metric\nt1,2024-01-01,5\nt1,2024-01-02,7\n",
            )
        )

        assert step is UploadStep.DISCOVERY
        assert workflow.missing_kpis == ["new_metric"]
        assert store.facts == {}

    def test_unreachable_dictionary_blocks_the_upload(self, store, make_workflow) -> None:
        store.fail("list_definitions", DictionaryStoreError("down"), DictionaryStoreError("down"))
        workflow = make_workflow()

        asyncio.run(workflow.load(file_name="jan.csv", text=CLEAN_FILE))

        assert workflow.step is UploadStep.UPLOAD
        assert workflow.error_messages == ["Failed to connect to dictionary for KPI validation."]


class TestSubmitDefinitions:
    def _in_discovery(self, make_workflow):
        workflow = make_workflow()
        asyncio.run(
            workflow.load(
                file_name="new.csv",
                text="tenant_id,kpi_date,alpha,beta\nacme,2024-01-01,1,2\n",
            )
        )
        assert workflow.step is UploadStep.DISCOVERY
        return workflow

    def test_saves_definitions_and_becomes_ingest_ready(self, store, make_workflow) -> None:
        workflow = self._in_discovery(make_workflow)
        definitions = [
            KPIDefinition(kpi_key="alpha", kpi_name="Alpha", owner="ops"),
            KPIDefinition(kpi_key="beta", kpi_name="Beta"),
        ]

        step = asyncio.run(workflow.submit_definitions(definitions))

        assert step is UploadStep.VALIDATE
        assert store.definitions["alpha"].owner == "ops"
        assert set(store.definitions) == {"alpha", "beta"}

    def test_incomplete_submission_stays_in_discovery(self, store, make_workflow) -> None:
        workflow = self._in_discovery(make_workflow)

        step = asyncio.run(workflow.submit_definitions([KPIDefinition.draft("alpha")]))

        assert step is UploadStep.DISCOVERY
        assert "missing definitions for beta" in workflow.error_messages[0]
        assert store.definitions == {}

    def test_blank_name_stays_in_discovery(self, store, make_workflow) -> None:
        workflow = self._in_discovery(make_workflow)

        asyncio.run(
            workflow.submit_definitions(
                [KPIDefinition(kpi_key="alpha", kpi_name=" "), KPIDefinition.draft("beta")]
            )
        )

        assert workflow.step is UploadStep.DISCOVERY
        assert "empty kpi_name for alpha" in workflow.error_messages[0]

    def test_save_failure_returns_to_upload(self, store, make_workflow) -> None:
        workflow = self._in_discovery(make_workflow)
        store.fail("upsert_definition", None, DictionaryStoreError("permission denied"))

        step = asyncio.run(workflow.submit_definitions(workflow.drafts))

        assert step is UploadStep.UPLOAD
        assert workflow.error_messages == ["Failed to save new definitions: permission denied"]
        assert set(store.definitions) == {"alpha"}

    def test_only_allowed_from_discovery(self, known_store, make_workflow) -> None:
        workflow = make_workflow()

        with pytest.raises(WorkflowStateError):
            asyncio.run(workflow.submit_definitions([KPIDefinition.draft("sessions")]))


class TestIngest:
    def test_ingest_writes_facts_and_logs_success(self, known_store, make_workflow) -> None:
        completed: list[str] = []
        workflow = make_workflow(on_complete=completed.append)
        asyncio.run(workflow.load(file_name="jan.csv", text=CLEAN_FILE))

        step = asyncio.run(workflow.ingest())

        assert step is UploadStep.COMPLETE
        assert workflow.progress == 100
        assert completed == ["acme"]
        assert known_store.facts[("acme", "north", "2024-01-01")].kpis == {"sessions": 120.0, "revenue": 99.5}
        (entry,) = known_store.upload_log
        assert entry.file_name == "jan.csv"
        assert entry.rows_processed == 2
        assert entry.rows_failed == 0
        assert entry.status is UploadStatus.SUCCESS

    def test_async_completion_callback_is_awaited(self, known_store, make_workflow) -> None:
        completed: list[str] = []

        async def refresh(tenant_id: str) -> None:
            completed.append(tenant_id)

        workflow = make_workflow(on_complete=refresh)
        asyncio.run(workflow.load(file_name="jan.csv", text=CLEAN_FILE))
        asyncio.run(workflow.ingest())

        assert completed == ["acme"]

    def test_reingesting_the_same_file_is_idempotent(self, known_store, make_workflow) -> None:
        for _ in range(2):
            workflow = make_workflow()
            asyncio.run(workflow.load(file_name="jan.csv", text=CLEAN_FILE))
            asyncio.run(workflow.ingest())

        assert len(known_store.facts) == 2
        assert len(known_store.upload_log) == 2

    def test_failed_batch_reports_partial_and_returns_to_upload(self, known_store, make_workflow) -> None:
        known_store.fail("bulk_upsert_facts", None, FactStoreError("connection lost"), FactStoreError("connection lost"))
        workflow = make_workflow(batch_size=1, batch_retries=1)
        asyncio.run(workflow.load(file_name="jan.csv", text=CLEAN_FILE))

        step = asyncio.run(workflow.ingest())

        assert step is UploadStep.UPLOAD
        assert workflow.progress == 0
        assert workflow.error_messages == ["Synchronization Failure: connection lost"]
        (entry,) = known_store.upload_log
        assert entry.rows_processed == 1
        assert entry.rows_failed == 1
        assert entry.status is UploadStatus.PARTIAL
        assert entry.error_log == "connection lost"

    def test_ingest_requires_ingest_ready_state(self, known_store, make_workflow) -> None:
        workflow = make_workflow()

        with pytest.raises(WorkflowStateError):
            asyncio.run(workflow.ingest())
