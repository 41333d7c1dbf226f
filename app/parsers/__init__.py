"""
app/parsers package marker.
"""

from app.parsers.kpi_csv_parser import CSVStructureError, detect_delimiter, parse_kpi_csv

__all__ = [
    "CSVStructureError",
    "detect_delimiter",
    "parse_kpi_csv",
]
