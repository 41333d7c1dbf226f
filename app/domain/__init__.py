"""
app/domain package marker.
"""

from app.domain.kpi_threshold import AlertPriority, KPIThreshold, ThresholdDirection
from app.domain.kpi_upload import (
    BatchOutcome,
    FactRecord,
    KPIDefinition,
    ParsedCSV,
    ParsedRow,
    RowValidationError,
    UploadLogEntry,
    UploadReport,
    UploadStatus,
    ValidationReport,
)

__all__ = [
    "AlertPriority",
    "BatchOutcome",
    "FactRecord",
    "KPIDefinition",
    "KPIThreshold",
    "ParsedCSV",
    "ParsedRow",
    "RowValidationError",
    "ThresholdDirection",
    "UploadLogEntry",
    "UploadReport",
    "UploadStatus",
    "ValidationReport",
]
