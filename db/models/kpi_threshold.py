"""
db/models/kpi_threshold.py

Alerting thresholds: one row per tenant and metric key.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Float, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin

THRESHOLD_NATURAL_KEY_CONSTRAINT = "uq_kpi_thresholds_tenant_kpi_key"


class KPIThresholdRecord(Base, CreatedAtMixin):
    __tablename__ = "kpi_thresholds"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    kpi_key: Mapped[str] = mapped_column(String(128), nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    warning_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    failure_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    threshold_type: Mapped[str] = mapped_column(
        String(1),
        nullable=False,
        default=">",
        comment="'>' when higher is healthier, '<' when lower is",
    )
    alert_priority: Mapped[str] = mapped_column(String(16), nullable=False, default="Medium")
    alert_frequency: Mapped[str] = mapped_column(String(32), nullable=False, default="Daily")

    __table_args__ = (
        UniqueConstraint("tenant_id", "kpi_key", name=THRESHOLD_NATURAL_KEY_CONSTRAINT),
        Index("ix_kpi_thresholds_tenant_id", "tenant_id"),
    )
