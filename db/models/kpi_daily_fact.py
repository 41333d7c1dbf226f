"""
db/models/kpi_daily_fact.py

Daily KPI facts: one row per tenant, site and date.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin

FACT_NATURAL_KEY_CONSTRAINT = "uq_kpi_daily_facts_tenant_site_date"


class KPIDailyFact(Base, CreatedAtMixin):
    """
    Numeric metric values for one ``(tenant_id, site_id, kpi_date)``.

    ``kpis`` holds the metric payload, e.g.::

        {"sessions": 1520.0, "revenue": 8400.5}

    The natural-key constraint is declared ``NULLS NOT DISTINCT`` so facts
    without a site still collide on re-upload and are updated in place.
    """

    __tablename__ = "kpi_daily_facts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    site_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    kpi_date: Mapped[date] = mapped_column(Date, nullable=False)
    source: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Origin of the fact, e.g. CSV_UPLOAD",
    )
    kpis: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        comment="Metric key -> numeric value",
    )

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "site_id",
            "kpi_date",
            name=FACT_NATURAL_KEY_CONSTRAINT,
            postgresql_nulls_not_distinct=True,
        ),
        Index("ix_kpi_daily_facts_tenant_id", "tenant_id"),
        Index("ix_kpi_daily_facts_tenant_date", "tenant_id", "kpi_date"),
    )
