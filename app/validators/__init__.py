"""
app/validators package marker.
"""

from app.validators.kpi_csv_validator import DATE_PATTERN, KPICSVValidator

__all__ = [
    "DATE_PATTERN",
    "KPICSVValidator",
]
