"""
app/api/routers/kpi_upload.py

KPI telemetry upload endpoints: template download and the
upload -> discovery -> ingest workflow.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, status

from app.api.dependencies import get_csv_upload, read_csv_text
from app.schemas.kpi_upload import (
    DefinitionSubmissionRequest,
    KPIDefinitionPayload,
    UploadErrorResponse,
    UploadWorkflowResponse,
)
from app.services.kpi_upload_workflow import KPIUploadWorkflow, WorkflowStateError
from app.services.kpi_vault_service import KPIVaultService, get_kpi_vault_service
from app.services.template_service import TemplateService
from app.services.upload_registry import (
    UploadNotFoundError,
    UploadWorkflowRegistry,
    get_upload_workflow_registry,
)

router = APIRouter(prefix="/kpi", tags=["kpi-upload"])


@router.get("/template")
async def download_template(
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> Response:
    """
    Download an empty CSV whose header lists core columns and known metrics.
    """

    template = await TemplateService(vault=vault).build()
    return Response(
        content=template.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{template.file_name}"'},
    )


@router.post("/uploads", response_model=UploadWorkflowResponse, status_code=status.HTTP_201_CREATED)
async def create_upload(
    file: UploadFile = Depends(get_csv_upload),
    registry: UploadWorkflowRegistry = Depends(get_upload_workflow_registry),
) -> UploadWorkflowResponse:
    """
    Parse, validate and reconcile one CSV file.

    Validation failures are reported in ``errors`` with ``step="upload"``
    rather than as an HTTP error, so the caller can show the itemized list.
    """

    try:
        text = await read_csv_text(file)
    finally:
        await file.close()

    upload_id, workflow = registry.create()
    await workflow.load(file_name=file.filename, text=text)
    return _snapshot(upload_id, workflow)


@router.get("/uploads/{upload_id}", response_model=UploadWorkflowResponse)
async def get_upload(
    upload_id: UUID,
    registry: UploadWorkflowRegistry = Depends(get_upload_workflow_registry),
) -> UploadWorkflowResponse:
    return _snapshot(upload_id, _get_workflow(registry, upload_id))


@router.post("/uploads/{upload_id}/definitions", response_model=UploadWorkflowResponse)
async def submit_definitions(
    upload_id: UUID,
    payload: DefinitionSubmissionRequest,
    registry: UploadWorkflowRegistry = Depends(get_upload_workflow_registry),
) -> UploadWorkflowResponse:
    workflow = _get_workflow(registry, upload_id)
    try:
        await workflow.submit_definitions([item.to_domain() for item in payload.definitions])
    except WorkflowStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _snapshot(upload_id, workflow)


@router.post("/uploads/{upload_id}/ingest", response_model=UploadWorkflowResponse)
async def ingest_upload(
    upload_id: UUID,
    registry: UploadWorkflowRegistry = Depends(get_upload_workflow_registry),
) -> UploadWorkflowResponse:
    workflow = _get_workflow(registry, upload_id)
    try:
        await workflow.ingest()
    except WorkflowStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _snapshot(upload_id, workflow)


@router.delete("/uploads/{upload_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_upload(
    upload_id: UUID,
    registry: UploadWorkflowRegistry = Depends(get_upload_workflow_registry),
) -> Response:
    """
    Abandon an upload. Facts already ingested stay in the vault.
    """

    try:
        registry.discard(upload_id)
    except UploadNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Upload '{upload_id}' not found.",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _get_workflow(registry: UploadWorkflowRegistry, upload_id: UUID) -> KPIUploadWorkflow:
    try:
        return registry.get(upload_id)
    except UploadNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Upload '{upload_id}' not found.",
        ) from exc


def _snapshot(upload_id: UUID, workflow: KPIUploadWorkflow) -> UploadWorkflowResponse:
    report = workflow.last_report
    return UploadWorkflowResponse(
        upload_id=upload_id,
        step=workflow.step.value,
        file_name=workflow.file_name,
        row_count=len(workflow.rows),
        target_tenant=workflow.target_tenant,
        progress=workflow.progress,
        errors=[UploadErrorResponse.from_domain(error) for error in workflow.errors],
        missing_kpis=list(workflow.missing_kpis),
        drafts=[KPIDefinitionPayload.from_domain(draft) for draft in workflow.drafts],
        rows_committed=report.rows_committed if report is not None else None,
        rows_failed=report.rows_failed if report is not None else None,
        upload_status=report.status.value if report is not None else None,
    )
