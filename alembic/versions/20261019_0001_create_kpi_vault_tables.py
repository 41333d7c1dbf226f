"""create kpi vault tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

_DEFAULT_TEMPLATE_HEADERS = ("tenant_id", "site_id", "kpi_date")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "kpi_dictionary",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kpi_key", sa.String(length=128), nullable=False,
                  comment="Column name used for the metric in uploaded CSV files"),
        sa.Column("kpi_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("formula", sa.Text(), nullable=False, server_default=""),
        sa.Column("input_metrics", sa.Text(), nullable=False, server_default=""),
        sa.Column("owner", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("business_goal_relation", sa.Text(), nullable=False, server_default=""),
        sa.Column("north_star_alignment", sa.Text(), nullable=False, server_default=""),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_kpi_dictionary"),
        sa.UniqueConstraint("kpi_key", name="uq_kpi_dictionary_kpi_key"),
    )

    op.create_table(
        "kpi_daily_facts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("site_id", sa.String(length=255), nullable=True),
        sa.Column("kpi_date", sa.Date(), nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False,
                  comment="Origin of the fact, e.g. CSV_UPLOAD"),
        sa.Column(
            "kpis",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Metric key -> numeric value",
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_kpi_daily_facts"),
        sa.UniqueConstraint(
            "tenant_id",
            "site_id",
            "kpi_date",
            name="uq_kpi_daily_facts_tenant_site_date",
            postgresql_nulls_not_distinct=True,
        ),
    )
    op.create_index("ix_kpi_daily_facts_tenant_id", "kpi_daily_facts", ["tenant_id"], unique=False)
    op.create_index(
        "ix_kpi_daily_facts_tenant_date",
        "kpi_daily_facts",
        ["tenant_id", "kpi_date"],
        unique=False,
    )

    op.create_table(
        "csv_upload_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("rows_processed", sa.Integer(), nullable=False),
        sa.Column("rows_failed", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False,
                  comment="Success, Partial, Failed"),
        sa.Column("error_log", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_csv_upload_log"),
    )
    op.create_index("ix_csv_upload_log_created_at", "csv_upload_log", ["created_at"], unique=False)

    template_headers = op.create_table(
        "csv_template_headers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("column_name", sa.String(length=128), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_csv_template_headers"),
        sa.UniqueConstraint("column_name", name="uq_csv_template_headers_column_name"),
    )
    op.bulk_insert(
        template_headers,
        [
            {"column_name": name, "position": position}
            for position, name in enumerate(_DEFAULT_TEMPLATE_HEADERS)
        ],
    )


def downgrade() -> None:
    op.drop_table("csv_template_headers")
    op.drop_index("ix_csv_upload_log_created_at", table_name="csv_upload_log")
    op.drop_table("csv_upload_log")
    op.drop_index("ix_kpi_daily_facts_tenant_date", table_name="kpi_daily_facts")
    op.drop_index("ix_kpi_daily_facts_tenant_id", table_name="kpi_daily_facts")
    op.drop_table("kpi_daily_facts")
    op.drop_table("kpi_dictionary")
