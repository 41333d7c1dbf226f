"""
app/services/template_service.py

Builds the downloadable KPI CSV template: core headers followed by every
metric key currently in the dictionary, with no data rows.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from app.services.kpi_vault_service import KPIVaultService

TEMPLATE_FILE_PREFIX = "kpi_telemetry_template"


@dataclass(frozen=True)
class CSVTemplate:
    file_name: str
    content: str


def render_template(core_headers: Iterable[str], kpi_keys: Iterable[str]) -> str:
    """Comma-joined header line with a trailing newline."""
    columns: list[str] = []
    for column in [*core_headers, *kpi_keys]:
        if column and column not in columns:
            columns.append(column)
    return ",".join(columns) + "\n"


def template_file_name(today: date | None = None) -> str:
    return f"{TEMPLATE_FILE_PREFIX}_{(today or date.today()).isoformat()}.csv"


class TemplateService:
    def __init__(self, *, vault: KPIVaultService) -> None:
        self._vault = vault

    async def build(self, *, today: date | None = None) -> CSVTemplate:
        core_headers = await self._vault.get_template_headers()
        dictionary = await self._vault.get_kpi_dictionary()
        return CSVTemplate(
            file_name=template_file_name(today),
            content=render_template(core_headers, (entry.kpi_key for entry in dictionary)),
        )
