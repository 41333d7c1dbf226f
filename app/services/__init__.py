"""
app/services package marker.
"""

from app.services.fact_upload_service import FactUploader, progress_percent
from app.services.kpi_upload_workflow import KPIUploadWorkflow, UploadStep, WorkflowStateError
from app.services.kpi_vault_service import (
    DictionaryUnavailableError,
    KPIVaultService,
    get_kpi_vault_service,
)
from app.services.schema_reconciliation_service import (
    DefinitionCoverageError,
    DefinitionSaveError,
    SchemaReconciliationService,
)
from app.services.template_service import CSVTemplate, TemplateService
from app.services.threshold_service import ThresholdService
from app.services.upload_registry import (
    UploadNotFoundError,
    UploadWorkflowRegistry,
    get_upload_workflow_registry,
)

__all__ = [
    "CSVTemplate",
    "DefinitionCoverageError",
    "DefinitionSaveError",
    "DictionaryUnavailableError",
    "FactUploader",
    "KPIUploadWorkflow",
    "KPIVaultService",
    "SchemaReconciliationService",
    "TemplateService",
    "ThresholdService",
    "UploadNotFoundError",
    "UploadStep",
    "UploadWorkflowRegistry",
    "WorkflowStateError",
    "get_kpi_vault_service",
    "get_upload_workflow_registry",
    "progress_percent",
]
