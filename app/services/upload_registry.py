"""
app/services/upload_registry.py

In-process registry of upload workflows addressed by ``upload_id``.

Workflows are held in memory for the lifetime of the API process; the
oldest entries are evicted once ``max_entries`` is reached.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from collections.abc import Callable
from functools import lru_cache

from app.config import get_kpi_upload_settings
from app.services.fact_upload_service import FactUploader
from app.services.kpi_upload_workflow import KPIUploadWorkflow
from app.services.kpi_vault_service import KPIVaultService, get_kpi_vault_service

logger = logging.getLogger(__name__)

WorkflowFactory = Callable[[], KPIUploadWorkflow]


class UploadNotFoundError(KeyError):
    """
    Raised when an ``upload_id`` is unknown or has been evicted.
    """


class UploadWorkflowRegistry:
    def __init__(self, *, factory: WorkflowFactory, max_entries: int = 100) -> None:
        self._factory = factory
        self._max_entries = max(1, max_entries)
        self._workflows: OrderedDict[uuid.UUID, KPIUploadWorkflow] = OrderedDict()

    def create(self) -> tuple[uuid.UUID, KPIUploadWorkflow]:
        upload_id = uuid.uuid4()
        self._workflows[upload_id] = self._factory()
        while len(self._workflows) > self._max_entries:
            evicted, _ = self._workflows.popitem(last=False)
            logger.info("Evicted upload workflow upload_id=%s", evicted)
        return upload_id, self._workflows[upload_id]

    def get(self, upload_id: uuid.UUID) -> KPIUploadWorkflow:
        try:
            return self._workflows[upload_id]
        except KeyError as exc:
            raise UploadNotFoundError(str(upload_id)) from exc

    def discard(self, upload_id: uuid.UUID) -> None:
        try:
            del self._workflows[upload_id]
        except KeyError as exc:
            raise UploadNotFoundError(str(upload_id)) from exc

    def __len__(self) -> int:
        return len(self._workflows)


def build_upload_workflow(vault: KPIVaultService) -> KPIUploadWorkflow:
    settings = get_kpi_upload_settings()
    return KPIUploadWorkflow(
        vault=vault,
        uploader=FactUploader(
            vault=vault,
            batch_size=settings.batch_size,
            batch_retries=settings.batch_retries,
        ),
    )


@lru_cache(maxsize=1)
def get_upload_workflow_registry() -> UploadWorkflowRegistry:
    vault = get_kpi_vault_service()
    return UploadWorkflowRegistry(factory=lambda: build_upload_workflow(vault))
