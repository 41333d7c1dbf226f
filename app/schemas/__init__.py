"""
app/schemas package marker.
"""

from app.schemas.kpi_upload import (
    DefinitionSubmissionRequest,
    FactResponse,
    KPIDefinitionPayload,
    KPIThresholdPayload,
    KPIThresholdResponse,
    TenantListResponse,
    ThresholdSubmissionRequest,
    UploadErrorResponse,
    UploadLogResponse,
    UploadWorkflowResponse,
)

__all__ = [
    "DefinitionSubmissionRequest",
    "FactResponse",
    "KPIDefinitionPayload",
    "KPIThresholdPayload",
    "KPIThresholdResponse",
    "TenantListResponse",
    "ThresholdSubmissionRequest",
    "UploadErrorResponse",
    "UploadLogResponse",
    "UploadWorkflowResponse",
]
