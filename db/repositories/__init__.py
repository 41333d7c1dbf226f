"""
Repository layer exports.
"""

from db.repositories.errors import (
    DictionaryStoreError,
    FactStoreError,
    KPIStoreError,
    TemplateHeaderStoreError,
    ThresholdStoreError,
    UploadLogStoreError,
)
from db.repositories.kpi_dictionary_repository import KPIDictionaryRepository
from db.repositories.kpi_fact_repository import KPIFactRepository
from db.repositories.kpi_threshold_repository import KPIThresholdRepository
from db.repositories.template_header_repository import TemplateHeaderRepository
from db.repositories.upload_log_repository import UploadLogRepository

__all__ = [
    "KPIDictionaryRepository",
    "KPIFactRepository",
    "KPIThresholdRepository",
    "TemplateHeaderRepository",
    "UploadLogRepository",
    "KPIStoreError",
    "DictionaryStoreError",
    "FactStoreError",
    "UploadLogStoreError",
    "TemplateHeaderStoreError",
    "ThresholdStoreError",
]
