"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.csv_template_header import CSVTemplateHeader
from db.models.csv_upload_log import CSVUploadLog
from db.models.kpi_daily_fact import KPIDailyFact
from db.models.kpi_definition import KPIDefinitionRecord
from db.models.kpi_threshold import KPIThresholdRecord

__all__ = [
    "CSVTemplateHeader",
    "CSVUploadLog",
    "KPIDailyFact",
    "KPIDefinitionRecord",
    "KPIThresholdRecord",
]
