"""
app/domain/kpi_threshold.py

Per-tenant alerting thresholds for dictionary metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ThresholdDirection(str, Enum):
    """Whether a healthy value sits above or below the target."""

    ABOVE = ">"
    BELOW = "<"


class AlertPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


DEFAULT_ALERT_FREQUENCY = "Daily"


@dataclass(frozen=True)
class KPIThreshold:
    """
    Target and alert bands for one ``(tenant_id, kpi_key)``.
    """

    tenant_id: str
    kpi_key: str
    target_value: float = 0.0
    warning_threshold: float = 0.0
    failure_threshold: float = 0.0
    threshold_type: ThresholdDirection = ThresholdDirection.ABOVE
    alert_priority: AlertPriority = AlertPriority.MEDIUM
    alert_frequency: str = DEFAULT_ALERT_FREQUENCY

    @classmethod
    def draft(cls, tenant_id: str, kpi_key: str) -> "KPIThreshold":
        """Zeroed bands for a metric the tenant has not calibrated yet."""
        return cls(tenant_id=tenant_id, kpi_key=kpi_key)

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.tenant_id, self.kpi_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "kpi_key": self.kpi_key,
            "target_value": self.target_value,
            "warning_threshold": self.warning_threshold,
            "failure_threshold": self.failure_threshold,
            "threshold_type": self.threshold_type.value,
            "alert_priority": self.alert_priority.value,
            "alert_frequency": self.alert_frequency,
        }
