"""
db/models/kpi_definition.py

Metric dictionary: one row per metric key known to the vault.
"""

from __future__ import annotations

import uuid

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin

KPI_KEY_CONSTRAINT = "uq_kpi_dictionary_kpi_key"


class KPIDefinitionRecord(Base, CreatedAtMixin):
    """
    Human-readable definition and ownership metadata for one metric key.

    ``kpi_key`` is the natural key: saving a definition for an existing key
    overwrites the descriptive columns in place.
    """

    __tablename__ = "kpi_dictionary"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    kpi_key: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Column name used for the metric in uploaded CSV files",
    )
    kpi_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    formula: Mapped[str] = mapped_column(Text, nullable=False, default="")
    input_metrics: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    business_goal_relation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    north_star_alignment: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (UniqueConstraint("kpi_key", name=KPI_KEY_CONSTRAINT),)
