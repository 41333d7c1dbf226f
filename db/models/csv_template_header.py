"""
db/models/csv_template_header.py

Core columns that open every generated KPI CSV template.
"""

from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class CSVTemplateHeader(Base):
    __tablename__ = "csv_template_headers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    column_name: Mapped[str] = mapped_column(String(128), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("column_name", name="uq_csv_template_headers_column_name"),
    )
