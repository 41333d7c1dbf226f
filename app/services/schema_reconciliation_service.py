"""
app/services/schema_reconciliation_service.py

Diffs uploaded metric columns against the metric dictionary and saves the
definitions collected for undiscovered keys.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from app.domain.kpi_upload import RESERVED_COLUMNS, KPIDefinition
from app.services.kpi_vault_service import KPIVaultService

logger = logging.getLogger(__name__)


class DefinitionSaveError(RuntimeError):
    """
    Raised when a submitted definition cannot be saved to the dictionary.
    """

    def __init__(self, kpi_key: str, message: str) -> None:
        super().__init__(message)
        self.kpi_key = kpi_key


class DefinitionCoverageError(ValueError):
    """
    Raised when submitted definitions do not match the undiscovered keys.
    """


def discover_metric_keys(headers: Iterable[str]) -> list[str]:
    """Header names that are not core columns, in header order."""
    return [header for header in headers if header and header not in RESERVED_COLUMNS]


def find_dangling_keys(discovered: Iterable[str], known: Iterable[str]) -> list[str]:
    known_keys = set(known)
    return [key for key in discovered if key not in known_keys]


def draft_definitions(missing: Iterable[str]) -> list[KPIDefinition]:
    return [KPIDefinition.draft(key) for key in missing]


class SchemaReconciliationService:
    def __init__(self, *, vault: KPIVaultService) -> None:
        self._vault = vault

    async def find_missing(self, headers: Sequence[str]) -> list[str]:
        """
        Return metric keys present in ``headers`` but absent from the dictionary.

        Raises:
            DictionaryUnavailableError: the dictionary could not be read.
        """
        discovered = discover_metric_keys(headers)
        if not discovered:
            return []
        known = await self._vault.get_known_metric_keys()
        missing = find_dangling_keys(discovered, known)
        if missing:
            logger.info(
                "Undiscovered metric keys count=%d keys=%s",
                len(missing),
                ", ".join(missing),
            )
        return missing

    async def save_definitions(
        self,
        definitions: Sequence[KPIDefinition],
        *,
        expected_keys: Sequence[str] | None = None,
    ) -> None:
        """
        Save each definition individually, in order.

        When ``expected_keys`` is given the submission must cover exactly
        those keys.
        """
        if expected_keys is not None:
            self._check_coverage(definitions, expected_keys)

        for definition in definitions:
            try:
                await self._vault.save_kpi_definition(definition)
            except Exception as exc:
                logger.error(
                    "Definition save failed kpi_key=%r: %s",
                    definition.kpi_key,
                    exc,
                )
                raise DefinitionSaveError(definition.kpi_key, str(exc)) from exc

        logger.info("Saved metric definitions count=%d", len(definitions))

    @staticmethod
    def _check_coverage(definitions: Sequence[KPIDefinition], expected_keys: Sequence[str]) -> None:
        submitted = [definition.kpi_key for definition in definitions]
        expected = set(expected_keys)
        missing = [key for key in expected_keys if key not in submitted]
        unexpected = [key for key in submitted if key not in expected]
        if missing or unexpected:
            parts = []
            if missing:
                parts.append(f"missing definitions for {', '.join(missing)}")
            if unexpected:
                parts.append(f"unexpected keys {', '.join(unexpected)}")
            raise DefinitionCoverageError("Definition submission rejected: " + "; ".join(parts) + ".")
        blank = [definition.kpi_key for definition in definitions if not definition.kpi_name.strip()]
        if blank:
            raise DefinitionCoverageError(f"Definition submission rejected: empty kpi_name for {', '.join(blank)}.")
