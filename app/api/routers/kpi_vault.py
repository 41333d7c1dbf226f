"""
app/api/routers/kpi_vault.py

Endpoints over the KPI vault. Reads degrade to empty results when the store
is unreachable; threshold saves report a failed write as 503.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas.kpi_upload import (
    FactResponse,
    KPIDefinitionPayload,
    KPIThresholdResponse,
    TenantListResponse,
    ThresholdSubmissionRequest,
    UploadLogResponse,
)
from app.services.kpi_vault_service import KPIVaultService, get_kpi_vault_service
from app.services.threshold_service import ThresholdService
from db.repositories.errors import KPIStoreError

router = APIRouter(prefix="/kpi", tags=["kpi-vault"])


@router.get("/dictionary", response_model=list[KPIDefinitionPayload])
async def list_dictionary(
    keys: list[str] | None = Query(default=None, description="Optional metric keys to filter by"),
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> list[KPIDefinitionPayload]:
    definitions = await vault.get_kpi_dictionary(keys)
    return [KPIDefinitionPayload.from_domain(definition) for definition in definitions]


@router.get("/tenants", response_model=TenantListResponse)
async def list_tenants(
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> TenantListResponse:
    return TenantListResponse(tenants=await vault.get_available_tenants())


@router.get("/tenants/{tenant_id}/facts", response_model=list[FactResponse])
async def list_tenant_facts(
    tenant_id: str,
    days: int | None = Query(default=None, ge=1, le=3650, description="Trailing window in days"),
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> list[FactResponse]:
    facts = await vault.get_tenant_facts(tenant_id, days=days)
    return [FactResponse.from_domain(fact) for fact in facts]


@router.get("/uploads-log", response_model=list[UploadLogResponse])
async def list_upload_log(
    limit: int = Query(default=20, ge=1, le=200),
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> list[UploadLogResponse]:
    entries = await vault.get_upload_history(limit)
    return [UploadLogResponse.from_domain(entry) for entry in entries]


@router.get("/tenants/{tenant_id}/thresholds", response_model=list[KPIThresholdResponse])
async def list_tenant_thresholds(
    tenant_id: str,
    seed_missing: bool = Query(
        default=False,
        description="Append zeroed drafts for dictionary metrics without a saved threshold",
    ),
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> list[KPIThresholdResponse]:
    thresholds = await ThresholdService(vault=vault).list_thresholds(tenant_id, seed_missing=seed_missing)
    return [KPIThresholdResponse.from_domain(threshold) for threshold in thresholds]


@router.put("/tenants/{tenant_id}/thresholds", response_model=list[KPIThresholdResponse])
async def save_tenant_thresholds(
    tenant_id: str,
    payload: ThresholdSubmissionRequest,
    vault: KPIVaultService = Depends(get_kpi_vault_service),
) -> list[KPIThresholdResponse]:
    thresholds = [item.to_domain(tenant_id) for item in payload.thresholds]
    try:
        saved = await ThresholdService(vault=vault).save_thresholds(tenant_id, thresholds)
    except KPIStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to save thresholds: {exc}",
        ) from exc
    return [KPIThresholdResponse.from_domain(threshold) for threshold in saved]
