"""
Repository-layer exceptions for KPI vault persistence.
"""

from __future__ import annotations


class KPIStoreError(Exception):
    """Base exception for vault persistence failures."""


class DictionaryStoreError(KPIStoreError):
    """Raised when a metric dictionary read or write fails."""


class FactStoreError(KPIStoreError):
    """Raised when a fact upsert or read fails."""


class UploadLogStoreError(KPIStoreError):
    """Raised when an upload-log entry cannot be written or read."""


class TemplateHeaderStoreError(KPIStoreError):
    """Raised when template core headers cannot be read."""


class ThresholdStoreError(KPIStoreError):
    """Raised when tenant thresholds cannot be read or saved."""
