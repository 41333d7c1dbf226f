"""
tests/test_fact_upload_service.py

Pytest unit tests for the chunked, sequential fact uploader.
"""

from __future__ import annotations

import asyncio

import pytest

from app.domain.kpi_upload import FactRecord, UploadStatus
from app.services.fact_upload_service import FactUploader, progress_percent
from db.repositories.errors import FactStoreError


def _facts(count: int) -> list[FactRecord]:
    return [
        FactRecord(tenant_id="acme", site_id=None, kpi_date=f"2024-{1 + n // 28:02d}-{1 + n % 28:02d}", kpis={"sessions": float(n)})
        for n in range(count)
    ]


class TestProgressPercent:
    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [(1, 3, 33), (2, 3, 67), (3, 3, 100), (1, 8, 13), (0, 0, 100)],
    )
    def test_rounds_half_up(self, completed, total, expected) -> None:
        assert progress_percent(completed, total) == expected


class TestFactUploader:
    def test_uploads_in_sequential_batches_with_progress(self, store, vault, sleeper) -> None:
        uploader = FactUploader(vault=vault, batch_size=50, sleep=sleeper)
        progress: list[int] = []

        report = asyncio.run(uploader.upload(_facts(123), on_progress=progress.append))

        assert store.fact_batches == [50, 50, 23]
        assert progress == [33, 67, 100]
        assert report.total_batches == 3
        assert report.rows_committed == 123
        assert report.rows_failed == 0
        assert report.status is UploadStatus.SUCCESS
        assert len(store.facts) == 123

    def test_retries_a_failed_batch_before_moving_on(self, store, vault, sleeper) -> None:
        store.fail("bulk_upsert_facts", None, FactStoreError("deadlock detected"))
        uploader = FactUploader(vault=vault, batch_size=2, batch_retries=1, sleep=sleeper)

        report = asyncio.run(uploader.upload(_facts(5)))

        assert store.fact_batches == [2, 2, 2, 1]
        assert sleeper.delays == [1.0]
        assert [batch.attempts for batch in report.batches] == [1, 2, 1]
        assert report.status is UploadStatus.SUCCESS

    def test_stops_after_exhausted_batch_and_reports_partial(self, store, vault, sleeper) -> None:
        store.fail(
            "bulk_upsert_facts",
            None,
            FactStoreError("connection lost"),
            FactStoreError("connection lost"),
        )
        uploader = FactUploader(vault=vault, batch_size=2, batch_retries=1, sleep=sleeper)
        progress: list[int] = []

        report = asyncio.run(uploader.upload(_facts(5), on_progress=progress.append))

        assert store.fact_batches == [2, 2, 2]
        assert progress == [33]
        assert report.rows_committed == 2
        assert report.rows_failed == 3
        assert report.status is UploadStatus.PARTIAL
        assert report.error == "connection lost"

    def test_first_batch_failure_reports_failed(self, store, vault, sleeper) -> None:
        store.fail("bulk_upsert_facts", FactStoreError("down"))
        uploader = FactUploader(vault=vault, batch_size=10, batch_retries=0, sleep=sleeper)

        report = asyncio.run(uploader.upload(_facts(3)))

        assert report.rows_committed == 0
        assert report.status is UploadStatus.FAILED
        assert sleeper.delays == []

    def test_empty_upload_is_complete(self, store, vault, sleeper) -> None:
        report = asyncio.run(FactUploader(vault=vault, sleep=sleeper).upload([]))

        assert store.fact_batches == []
        assert report.progress == 100
        assert report.status is UploadStatus.SUCCESS
