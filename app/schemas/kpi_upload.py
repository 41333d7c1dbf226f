"""
app/schemas/kpi_upload.py

Request and response schemas for KPI upload and vault endpoints.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.kpi_threshold import DEFAULT_ALERT_FREQUENCY, AlertPriority, KPIThreshold, ThresholdDirection
from app.domain.kpi_upload import FactRecord, KPIDefinition, RowValidationError, UploadLogEntry


class KPIDefinitionPayload(BaseModel):
    """
    API model for one metric dictionary entry.
    """

    kpi_key: str = Field(..., min_length=1, max_length=128)
    kpi_name: str = Field(..., max_length=255)
    description: str = ""
    formula: str = ""
    input_metrics: str = ""
    owner: str = Field(default="", max_length=255)
    business_goal_relation: str = ""
    north_star_alignment: str = ""

    @classmethod
    def from_domain(cls, definition: KPIDefinition) -> "KPIDefinitionPayload":
        return cls(**definition.to_dict())

    def to_domain(self) -> KPIDefinition:
        return KPIDefinition(**self.model_dump())


class UploadErrorResponse(BaseModel):
    message: str
    line_number: int | None = Field(default=None, ge=1)
    column: str | None = None
    value: str | None = None

    @classmethod
    def from_domain(cls, error: RowValidationError) -> "UploadErrorResponse":
        return cls(
            message=str(error),
            line_number=error.line_number,
            column=error.column,
            value=error.value,
        )


class UploadWorkflowResponse(BaseModel):
    """
    Snapshot of one upload workflow.
    """

    upload_id: UUID
    step: str
    file_name: str
    row_count: int = Field(..., ge=0)
    target_tenant: str | None = None
    progress: int = Field(default=0, ge=0, le=100)
    errors: list[UploadErrorResponse] = Field(default_factory=list)
    missing_kpis: list[str] = Field(default_factory=list)
    drafts: list[KPIDefinitionPayload] = Field(default_factory=list)
    rows_committed: int | None = Field(default=None, ge=0)
    rows_failed: int | None = Field(default=None, ge=0)
    upload_status: str | None = None


class DefinitionSubmissionRequest(BaseModel):
    definitions: list[KPIDefinitionPayload] = Field(..., min_length=1)


class FactResponse(BaseModel):
    tenant_id: str
    site_id: str | None = None
    kpi_date: str
    source: str
    kpis: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, fact: FactRecord) -> "FactResponse":
        return cls(**fact.to_dict())


class TenantListResponse(BaseModel):
    tenants: list[str] = Field(default_factory=list)


class UploadLogResponse(BaseModel):
    file_name: str
    rows_processed: int = Field(..., ge=0)
    rows_failed: int = Field(..., ge=0)
    status: str
    error_log: str | None = None

    @classmethod
    def from_domain(cls, entry: UploadLogEntry) -> "UploadLogResponse":
        return cls(
            file_name=entry.file_name,
            rows_processed=entry.rows_processed,
            rows_failed=entry.rows_failed,
            status=entry.status.value,
            error_log=entry.error_log,
        )


class KPIThresholdPayload(BaseModel):
    """
    Threshold bands for one metric; the tenant comes from the request path.
    """

    kpi_key: str = Field(..., min_length=1, max_length=128)
    target_value: float = Field(default=0.0, allow_inf_nan=False)
    warning_threshold: float = Field(default=0.0, allow_inf_nan=False)
    failure_threshold: float = Field(default=0.0, allow_inf_nan=False)
    threshold_type: ThresholdDirection = ThresholdDirection.ABOVE
    alert_priority: AlertPriority = AlertPriority.MEDIUM
    alert_frequency: str = Field(default=DEFAULT_ALERT_FREQUENCY, min_length=1, max_length=32)

    def to_domain(self, tenant_id: str) -> KPIThreshold:
        return KPIThreshold(tenant_id=tenant_id, **self.model_dump())


class KPIThresholdResponse(KPIThresholdPayload):
    tenant_id: str

    @classmethod
    def from_domain(cls, threshold: KPIThreshold) -> "KPIThresholdResponse":
        return cls(**threshold.to_dict())


class ThresholdSubmissionRequest(BaseModel):
    thresholds: list[KPIThresholdPayload] = Field(..., min_length=1)
