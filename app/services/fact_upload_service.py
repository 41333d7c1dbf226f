"""
app/services/fact_upload_service.py

Chunked, strictly sequential fact upload with progress reporting.

Batch i+1 is not submitted until batch i's upsert has resolved. A failing
batch is retried in place (the upsert is idempotent); when its retries are
exhausted the remaining batches are abandoned and the report records how
many rows had already been committed.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Sequence

from app.domain.kpi_upload import BatchOutcome, FactRecord, UploadReport
from app.mappers.fact_mapper import chunk_records
from app.resilience import SleepFn, backoff_seconds
from app.services.kpi_vault_service import KPIVaultService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

DEFAULT_BATCH_SIZE = 50


def progress_percent(completed: int, total: int) -> int:
    """Half-up rounded completion percentage."""
    if total <= 0:
        return 100
    return int(math.floor(completed / total * 100 + 0.5))


class FactUploader:
    def __init__(
        self,
        *,
        vault: KPIVaultService,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_retries: int = 1,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._vault = vault
        self._batch_size = max(1, batch_size)
        self._batch_retries = max(0, batch_retries)
        self._sleep = sleep

    async def upload(
        self,
        records: Sequence[FactRecord],
        *,
        on_progress: ProgressCallback | None = None,
    ) -> UploadReport:
        chunks = chunk_records(records, self._batch_size)
        total_batches = len(chunks)
        outcomes: list[BatchOutcome] = []
        committed = 0
        progress = 0 if chunks else 100

        for index, chunk in enumerate(chunks):
            outcome = await self._submit_batch(index=index, chunk=chunk, total_batches=total_batches)
            outcomes.append(outcome)
            if not outcome.succeeded:
                logger.error(
                    "Fact upload aborted batch=%d/%d committed_rows=%d error=%s",
                    index + 1,
                    total_batches,
                    committed,
                    outcome.error,
                )
                break

            committed += len(chunk)
            progress = progress_percent(index + 1, total_batches)
            if on_progress is not None:
                on_progress(progress)
            logger.info(
                "Fact upload progress batch=%d/%d rows=%d progress=%d%%",
                index + 1,
                total_batches,
                len(chunk),
                progress,
            )

        return UploadReport(
            total_rows=len(records),
            total_batches=total_batches,
            rows_committed=committed,
            batches=outcomes,
            progress=progress,
        )

    async def _submit_batch(
        self,
        *,
        index: int,
        chunk: list[FactRecord],
        total_batches: int,
    ) -> BatchOutcome:
        total_attempts = 1 + self._batch_retries
        last_error = ""
        for attempt in range(1, total_attempts + 1):
            try:
                await self._vault.bulk_ingest_facts(chunk)
                return BatchOutcome(index=index, size=len(chunk), attempts=attempt)
            except Exception as exc:  # noqa: BLE001
                last_error = str(exc) or exc.__class__.__name__
                logger.warning(
                    "Fact batch failed batch=%d/%d attempt=%d/%d error=%s",
                    index + 1,
                    total_batches,
                    attempt,
                    total_attempts,
                    last_error,
                )
            if attempt < total_attempts:
                await self._sleep(backoff_seconds(attempt))

        return BatchOutcome(index=index, size=len(chunk), attempts=total_attempts, error=last_error)
