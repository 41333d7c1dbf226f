"""
app/mappers/fact_mapper.py

Maps validated rows to fact records ready for the vault.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence

from app.domain.kpi_upload import FactRecord, ParsedRow

# Longest leading decimal literal, as browsers' parseFloat reads it.
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_metric_value(raw: str | None) -> float:
    """
    Read the numeric prefix of ``raw``; anything unreadable becomes ``0.0``.

    ``"12.5"`` -> 12.5, ``"12abc"`` -> 12.0, ``"abc"`` / ``""`` -> 0.0.
    """

    if raw is None:
        return 0.0
    match = _NUMERIC_PREFIX.match(raw.strip())
    if match is None:
        return 0.0
    value = float(match.group(0))
    if not math.isfinite(value):
        return 0.0
    return value


def to_fact_record(row: ParsedRow) -> FactRecord:
    return FactRecord(
        tenant_id=row.tenant_id,
        site_id=row.site_id,
        kpi_date=row.kpi_date,
        kpis={key: coerce_metric_value(value) for key, value in row.metrics.items()},
    )


def build_fact_records(rows: Iterable[ParsedRow]) -> list[FactRecord]:
    return [to_fact_record(row) for row in rows]


def chunk_records(records: Sequence[FactRecord], size: int) -> list[list[FactRecord]]:
    """Split into consecutive chunks of ``size``; the last may be shorter."""
    step = max(1, size)
    return [list(records[start : start + step]) for start in range(0, len(records), step)]
