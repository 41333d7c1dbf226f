"""
app/domain/kpi_upload.py

Domain models used by the KPI telemetry upload flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

TENANT_COLUMN = "tenant_id"
SITE_COLUMN = "site_id"
DATE_COLUMN = "kpi_date"

REQUIRED_COLUMNS: tuple[str, ...] = (TENANT_COLUMN, DATE_COLUMN)
RESERVED_COLUMNS: frozenset[str] = frozenset({TENANT_COLUMN, SITE_COLUMN, DATE_COLUMN})
DEFAULT_TEMPLATE_HEADERS: tuple[str, ...] = (TENANT_COLUMN, SITE_COLUMN, DATE_COLUMN)

CSV_UPLOAD_SOURCE = "CSV_UPLOAD"


@dataclass(frozen=True)
class ParsedRow:
    """
    One data line of an uploaded file.

    Core columns are lifted into typed fields; every other column stays as
    its raw string under ``metrics`` until fact mapping coerces it.
    """

    line_number: int
    tenant_id: str
    kpi_date: str
    site_id: str | None
    metrics: dict[str, str]
    values: dict[str, str]

    @classmethod
    def from_values(cls, *, line_number: int, values: dict[str, str]) -> "ParsedRow":
        return cls(
            line_number=line_number,
            tenant_id=values.get(TENANT_COLUMN, ""),
            kpi_date=values.get(DATE_COLUMN, ""),
            site_id=values.get(SITE_COLUMN) or None,
            metrics={key: value for key, value in values.items() if key not in RESERVED_COLUMNS},
            values=dict(values),
        )


@dataclass(frozen=True)
class ParsedCSV:
    headers: list[str]
    delimiter: str
    rows: list[ParsedRow]


@dataclass(frozen=True)
class RowValidationError:
    """
    One validation finding, rendered for display by ``str()``.
    """

    message: str
    line_number: int | None = None
    column: str | None = None
    value: str | None = None

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"Line {self.line_number}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    errors: list[RowValidationError] = field(default_factory=list)
    target_tenant: str | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class KPIDefinition:
    """
    Metric dictionary entry keyed by ``kpi_key``.
    """

    kpi_key: str
    kpi_name: str
    description: str = ""
    formula: str = ""
    input_metrics: str = ""
    owner: str = ""
    business_goal_relation: str = ""
    north_star_alignment: str = ""

    @classmethod
    def draft(cls, kpi_key: str) -> "KPIDefinition":
        """Seed a definition for an undiscovered key; the key doubles as its name."""
        return cls(kpi_key=kpi_key, kpi_name=kpi_key)

    def to_dict(self) -> dict[str, str]:
        return {
            "kpi_key": self.kpi_key,
            "kpi_name": self.kpi_name,
            "description": self.description,
            "formula": self.formula,
            "input_metrics": self.input_metrics,
            "owner": self.owner,
            "business_goal_relation": self.business_goal_relation,
            "north_star_alignment": self.north_star_alignment,
        }


@dataclass(frozen=True)
class FactRecord:
    """
    Typed fact prepared for persistence.
    """

    tenant_id: str
    site_id: str | None
    kpi_date: str
    kpis: dict[str, float]
    source: str = CSV_UPLOAD_SOURCE

    @property
    def natural_key(self) -> tuple[str, str | None, str]:
        return (self.tenant_id, self.site_id, self.kpi_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "site_id": self.site_id,
            "kpi_date": self.kpi_date,
            "source": self.source,
            "kpis": dict(self.kpis),
        }


class UploadStatus(str, Enum):
    SUCCESS = "Success"
    PARTIAL = "Partial"
    FAILED = "Failed"


@dataclass(frozen=True)
class UploadLogEntry:
    """
    Write-once record of one ingestion attempt.
    """

    file_name: str
    rows_processed: int
    rows_failed: int
    status: UploadStatus
    error_log: str | None = None


@dataclass(frozen=True)
class BatchOutcome:
    index: int
    size: int
    attempts: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class UploadReport:
    """
    End-of-run chunked upload summary.

    ``rows_committed`` counts rows in batches whose upsert resolved; rows
    from a failing batch and every batch after it count as failed.
    """

    total_rows: int
    total_batches: int
    rows_committed: int
    batches: list[BatchOutcome] = field(default_factory=list)
    progress: int = 0

    @property
    def rows_failed(self) -> int:
        return self.total_rows - self.rows_committed

    @property
    def error(self) -> str | None:
        for batch in self.batches:
            if batch.error is not None:
                return batch.error
        return None

    @property
    def status(self) -> UploadStatus:
        if self.rows_failed == 0:
            return UploadStatus.SUCCESS
        if self.rows_committed > 0:
            return UploadStatus.PARTIAL
        return UploadStatus.FAILED
