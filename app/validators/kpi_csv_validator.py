"""
app/validators/kpi_csv_validator.py

File-level and row-level validation for KPI telemetry uploads.

A file is accepted or rejected as a whole: any finding blocks ingestion.
"""

from __future__ import annotations

import re
from datetime import date

from app.domain.kpi_upload import (
    DATE_COLUMN,
    REQUIRED_COLUMNS,
    TENANT_COLUMN,
    ParsedCSV,
    ParsedRow,
    RowValidationError,
    ValidationReport,
)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DUPLICATE_DATE_MESSAGE = "Integrity Failure: Multiple entries detected for the same date."


class KPICSVValidator:
    """
    Validates parsed KPI rows before any store is touched.
    """

    def validate(self, parsed: ParsedCSV) -> ValidationReport:
        """
        Return every finding for the file.

        Missing required columns short-circuit: rows are not examined.
        """

        missing_columns = self.check_required_columns(parsed.headers)
        if missing_columns:
            return ValidationReport(errors=missing_columns)

        errors: list[RowValidationError] = []
        for row in parsed.rows:
            errors.extend(self.validate_row(row))

        duplicate_error = self._check_duplicate_dates(parsed.rows)
        if duplicate_error is not None:
            errors.append(duplicate_error)

        tenant_error = self._check_single_tenant(parsed.rows)
        if tenant_error is not None:
            errors.append(tenant_error)

        if errors:
            return ValidationReport(errors=errors)
        return ValidationReport(target_tenant=parsed.rows[0].tenant_id)

    def check_required_columns(self, headers: list[str]) -> list[RowValidationError]:
        return [
            RowValidationError(message=f"Missing required column: {column}", column=column)
            for column in REQUIRED_COLUMNS
            if column not in headers
        ]

    def validate_row(self, row: ParsedRow) -> list[RowValidationError]:
        errors: list[RowValidationError] = []
        if not row.tenant_id:
            errors.append(
                RowValidationError(
                    message="Missing tenant_id.",
                    line_number=row.line_number,
                    column=TENANT_COLUMN,
                )
            )

        if not row.kpi_date:
            errors.append(
                RowValidationError(
                    message="Missing kpi_date.",
                    line_number=row.line_number,
                    column=DATE_COLUMN,
                )
            )
        elif not DATE_PATTERN.match(row.kpi_date):
            errors.append(
                RowValidationError(
                    message=f'Invalid date format "{row.kpi_date}". Expected YYYY-MM-DD.',
                    line_number=row.line_number,
                    column=DATE_COLUMN,
                    value=row.kpi_date,
                )
            )
        elif not _is_calendar_date(row.kpi_date):
            errors.append(
                RowValidationError(
                    message=f'Invalid calendar date "{row.kpi_date}".',
                    line_number=row.line_number,
                    column=DATE_COLUMN,
                    value=row.kpi_date,
                )
            )
        return errors

    @staticmethod
    def _check_duplicate_dates(rows: list[ParsedRow]) -> RowValidationError | None:
        # Tenant-agnostic: a date may appear at most once per file.
        dates = [row.kpi_date for row in rows]
        if len(set(dates)) < len(dates):
            return RowValidationError(message=DUPLICATE_DATE_MESSAGE, column=DATE_COLUMN)
        return None

    @staticmethod
    def _check_single_tenant(rows: list[ParsedRow]) -> RowValidationError | None:
        tenants = sorted({row.tenant_id for row in rows if row.tenant_id})
        if len(tenants) > 1:
            return RowValidationError(
                message=(
                    "Integrity Failure: A file may only contain one tenant_id; "
                    f"found {', '.join(tenants)}."
                ),
                column=TENANT_COLUMN,
            )
        return None


def _is_calendar_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True
