"""
app/services/kpi_upload_workflow.py

State machine driving one KPI telemetry upload:

    upload -> validate -> discovery -> ingest -> complete
                 ^            |
                 +------------+   (discovery only when new metric keys exist)

``validate`` is the ingest-ready state reached after a clean parse,
validation and dictionary reconciliation. Every fatal error replaces the
error list and returns the workflow to ``upload``; nothing is written to the
vault before ``ingest``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

from app.domain.kpi_upload import (
    KPIDefinition,
    ParsedRow,
    RowValidationError,
    UploadLogEntry,
    UploadReport,
    UploadStatus,
)
from app.mappers.fact_mapper import build_fact_records
from app.parsers.kpi_csv_parser import CSVStructureError, parse_kpi_csv
from app.services.fact_upload_service import FactUploader
from app.services.kpi_vault_service import DictionaryUnavailableError, KPIVaultService
from app.services.schema_reconciliation_service import (
    DefinitionCoverageError,
    DefinitionSaveError,
    SchemaReconciliationService,
    draft_definitions,
)
from app.validators.kpi_csv_validator import KPICSVValidator

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "telemetry_snapshot.csv"

CompletionCallback = Callable[[str], Awaitable[None] | None]


class UploadStep(str, Enum):
    UPLOAD = "upload"
    VALIDATE = "validate"
    DISCOVERY = "discovery"
    INGEST = "ingest"
    COMPLETE = "complete"


class WorkflowStateError(RuntimeError):
    """
    Raised when an operation is invoked from a step that does not allow it.
    """


class KPIUploadWorkflow:
    """
    Coordinates parsing, validation, schema reconciliation and ingestion for
    a single uploaded file.
    """

    def __init__(
        self,
        *,
        vault: KPIVaultService,
        uploader: FactUploader,
        reconciler: SchemaReconciliationService | None = None,
        validator: KPICSVValidator | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self._vault = vault
        self._uploader = uploader
        self._reconciler = reconciler or SchemaReconciliationService(vault=vault)
        self._validator = validator or KPICSVValidator()
        self._on_complete = on_complete

        self.step = UploadStep.UPLOAD
        self.errors: list[RowValidationError] = []
        self.file_name = DEFAULT_FILE_NAME
        self.headers: list[str] = []
        self.rows: list[ParsedRow] = []
        self.missing_kpis: list[str] = []
        self.drafts: list[KPIDefinition] = []
        self.target_tenant: str | None = None
        self.progress = 0
        self.last_report: UploadReport | None = None

    @property
    def error_messages(self) -> list[str]:
        return [str(error) for error in self.errors]

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def load(self, *, file_name: str | None, text: str) -> UploadStep:
        """
        Parse, validate and reconcile an uploaded file.

        Ends in ``discovery`` when undiscovered metric keys exist, in
        ``validate`` when the file is ready to ingest, else in ``upload``
        with ``errors`` populated.
        """
        self._require(UploadStep.UPLOAD, UploadStep.VALIDATE, UploadStep.DISCOVERY, action="load a file")
        self._reset(file_name)

        try:
            parsed = parse_kpi_csv(text)
        except CSVStructureError as exc:
            return self._fail([RowValidationError(message=str(exc))])

        self.headers = parsed.headers
        self.rows = parsed.rows

        report = self._validator.validate(parsed)
        if not report.is_valid:
            logger.info(
                "KPI upload rejected file=%r errors=%d",
                self.file_name,
                len(report.errors),
            )
            return self._fail(report.errors)

        self.target_tenant = report.target_tenant

        try:
            missing = await self._reconciler.find_missing(parsed.headers)
        except DictionaryUnavailableError as exc:
            return self._fail([RowValidationError(message=str(exc))])

        if missing:
            self.missing_kpis = missing
            self.drafts = draft_definitions(missing)
            self.step = UploadStep.DISCOVERY
        else:
            self.step = UploadStep.VALIDATE

        logger.info(
            "KPI upload validated file=%r tenant=%r rows=%d step=%s",
            self.file_name,
            self.target_tenant,
            len(self.rows),
            self.step.value,
        )
        return self.step

    async def submit_definitions(self, definitions: Sequence[KPIDefinition]) -> UploadStep:
        """
        Save definitions for every undiscovered key, then become ingest-ready.
        """
        self._require(UploadStep.DISCOVERY, action="submit definitions")

        try:
            await self._reconciler.save_definitions(definitions, expected_keys=self.missing_kpis)
        except DefinitionCoverageError as exc:
            self.errors = [RowValidationError(message=str(exc))]
            return self.step
        except DefinitionSaveError as exc:
            return self._fail([RowValidationError(message=f"Failed to save new definitions: {exc}")])

        self.drafts = list(definitions)
        self.errors = []
        self.step = UploadStep.VALIDATE
        return self.step

    async def ingest(self) -> UploadStep:
        """
        Upload fact records in sequential batches and log the attempt.
        """
        self._require(UploadStep.VALIDATE, action="ingest")
        self.step = UploadStep.INGEST
        self.progress = 0

        facts = build_fact_records(self.rows)
        logger.info(
            "Starting chunked fact synchronization tenant=%r rows=%d",
            self.target_tenant,
            len(facts),
        )

        report = await self._uploader.upload(facts, on_progress=self._set_progress)
        self.last_report = report

        await self._vault.log_upload(
            UploadLogEntry(
                file_name=self.file_name,
                rows_processed=report.rows_committed,
                rows_failed=report.rows_failed,
                status=report.status,
                error_log=report.error,
            )
        )

        if report.status is not UploadStatus.SUCCESS:
            self.progress = 0
            message = report.error or "Database connection failure."
            return self._fail([RowValidationError(message=f"Synchronization Failure: {message}")])

        logger.info(
            "Fact synchronization complete tenant=%r rows=%d",
            self.target_tenant,
            report.rows_committed,
        )
        self.step = UploadStep.COMPLETE
        if self._on_complete is not None and self.target_tenant is not None:
            outcome = self._on_complete(self.target_tenant)
            if inspect.isawaitable(outcome):
                await outcome
        return self.step

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_progress(self, progress: int) -> None:
        self.progress = progress

    def _reset(self, file_name: str | None) -> None:
        self.file_name = (file_name or "").strip() or DEFAULT_FILE_NAME
        self.errors = []
        self.headers = []
        self.rows = []
        self.missing_kpis = []
        self.drafts = []
        self.target_tenant = None
        self.progress = 0
        self.last_report = None

    def _fail(self, errors: list[RowValidationError]) -> UploadStep:
        self.errors = list(errors)
        self.step = UploadStep.UPLOAD
        return self.step

    def _require(self, *allowed: UploadStep, action: str) -> None:
        if self.step not in allowed:
            raise WorkflowStateError(f"Cannot {action} while the upload is in step '{self.step.value}'.")
