"""
app/parsers/kpi_csv_parser.py

Turns uploaded KPI telemetry text into typed rows.

Files are comma- or semicolon-delimited with a header line first. Fields are
tokenized with the standard ``csv`` reader, so a quoted field may contain
the delimiter or doubled quotes. Every physical line is exactly one record:
an unterminated quote ends at the line break.
"""

from __future__ import annotations

import csv
import re

from app.domain.kpi_upload import DATE_COLUMN, TENANT_COLUMN, ParsedCSV, ParsedRow

_BOM = "\ufeff"
_LINE_SPLIT = re.compile(r"\r?\n")


class CSVStructureError(ValueError):
    """
    Raised when the file has no usable header or data rows.
    """


def detect_delimiter(header_line: str) -> str:
    """Semicolon only when the header has semicolons and no commas."""
    if ";" in header_line and "," not in header_line:
        return ";"
    return ","


def parse_kpi_csv(text: str) -> ParsedCSV:
    """
    Parse raw file text into headers and data rows.

    Raises:
        CSVStructureError: fewer than two non-blank lines, or no data rows
            left after dropping repeated headers and all-empty rows.
    """

    if text.startswith(_BOM):
        text = text[len(_BOM):]

    lines = [line for line in _LINE_SPLIT.split(text) if line.strip()]
    if len(lines) < 2:
        raise CSVStructureError("The file appears to be empty or contains only headers.")

    delimiter = detect_delimiter(lines[0])
    try:
        tokenized = [_tokenize_line(line, delimiter) for line in lines]
    except csv.Error as exc:
        raise CSVStructureError(f"Invalid CSV format: {exc}") from exc

    headers, data = tokenized[0], tokenized[1:]

    rows: list[ParsedRow] = []
    for fields in data:
        values = _zip_row(headers, fields)
        if _is_repeated_header(values) or not any(values.values()):
            continue
        rows.append(ParsedRow.from_values(line_number=len(rows) + 2, values=values))

    if not rows:
        raise CSVStructureError("No valid data records found in the CSV (excluding headers).")

    return ParsedCSV(headers=headers, delimiter=delimiter, rows=rows)


def _tokenize_line(line: str, delimiter: str) -> list[str]:
    fields = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    return [_clean_field(field) for field in fields]


def _clean_field(raw: str) -> str:
    value = raw.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _zip_row(headers: list[str], fields: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for index, header in enumerate(headers):
        if not header:
            continue
        values[header] = fields[index] if index < len(fields) else ""
    return values


def _is_repeated_header(values: dict[str, str]) -> bool:
    return values.get(DATE_COLUMN) == DATE_COLUMN or values.get(TENANT_COLUMN) == TENANT_COLUMN
