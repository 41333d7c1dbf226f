"""
app/services/threshold_service.py

Reads and saves a tenant's KPI thresholds, seeding zeroed drafts for
dictionary metrics the tenant has not calibrated yet.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from app.domain.kpi_threshold import KPIThreshold
from app.services.kpi_vault_service import KPIVaultService

logger = logging.getLogger(__name__)


def seed_missing_thresholds(
    tenant_id: str,
    existing: Sequence[KPIThreshold],
    dictionary_keys: Iterable[str],
) -> list[KPIThreshold]:
    """Saved thresholds first, then one draft per uncovered dictionary key."""
    covered = {threshold.kpi_key for threshold in existing}
    drafts = [
        KPIThreshold.draft(tenant_id, key)
        for key in dict.fromkeys(dictionary_keys)
        if key not in covered
    ]
    return [*existing, *drafts]


class ThresholdService:
    def __init__(self, *, vault: KPIVaultService) -> None:
        self._vault = vault

    async def list_thresholds(self, tenant_id: str, *, seed_missing: bool = False) -> list[KPIThreshold]:
        existing = await self._vault.get_tenant_thresholds(tenant_id)
        if not seed_missing:
            return existing
        dictionary = await self._vault.get_kpi_dictionary()
        return seed_missing_thresholds(tenant_id, existing, (entry.kpi_key for entry in dictionary))

    async def save_thresholds(self, tenant_id: str, thresholds: Sequence[KPIThreshold]) -> list[KPIThreshold]:
        """
        Save ``thresholds`` under ``tenant_id`` and return what was written.

        Raises:
            KPIStoreError: the store rejected the write.
        """
        owned = [replace(threshold, tenant_id=tenant_id) for threshold in thresholds]
        await self._vault.save_thresholds(owned)
        logger.info("Saved KPI thresholds tenant=%r count=%d", tenant_id, len(owned))
        return owned
