"""
app/mappers package marker.
"""

from app.mappers.fact_mapper import build_fact_records, chunk_records, coerce_metric_value, to_fact_record

__all__ = [
    "build_fact_records",
    "chunk_records",
    "coerce_metric_value",
    "to_fact_record",
]
