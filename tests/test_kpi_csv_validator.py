from __future__ import annotations

import unittest

from app.parsers.kpi_csv_parser import parse_kpi_csv
from app.validators.kpi_csv_validator import DUPLICATE_DATE_MESSAGE, KPICSVValidator


class TestKPICSVValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = KPICSVValidator()

    def _validate(self, text: str):
        return self.validator.validate(parse_kpi_csv(text))

    def test_accepts_clean_file_and_sets_target_tenant(self) -> None:
        report = self._validate(
            "tenant_id,kpi_date,sessions\n"
            "acme,2024-01-01,1\n"
            "acme,2024-01-02,2\n"
            "acme,2024-01-03,3\n"
        )

        self.assertTrue(report.is_valid)
        self.assertEqual(report.target_tenant, "acme")

    def test_missing_required_columns_short_circuit_row_checks(self) -> None:
        report = self._validate("site_id,sessions\nnorth,1\nnorth,1\n")

        self.assertFalse(report.is_valid)
        self.assertEqual(
            [str(error) for error in report.errors],
            ["Missing required column: tenant_id", "Missing required column: kpi_date"],
        )
        self.assertIsNone(report.target_tenant)

    def test_row_errors_carry_line_numbers(self) -> None:
        report = self._validate(
            "tenant_id,kpi_date,sessions\n"
            "acme,2024-01-01,1\n"
            ",2024-01-02,2\n"
            "acme,01/03/2024,3\n"
        )

        messages = [str(error) for error in report.errors]
        self.assertIn("Line 3: Missing tenant_id.", messages)
        self.assertIn('Line 4: Invalid date format "01/03/2024". Expected YYYY-MM-DD.', messages)

    def test_rejects_dates_that_do_not_exist(self) -> None:
        report = self._validate("tenant_id,kpi_date,sessions\nacme,2024-02-30,1\n")

        self.assertEqual(len(report.errors), 1)
        self.assertEqual(report.errors[0].line_number, 2)
        self.assertEqual(report.errors[0].value, "2024-02-30")

    def test_duplicate_dates_are_one_file_level_error(self) -> None:
        report = self._validate(
            "tenant_id,kpi_date,sessions\n"
            "acme,2024-01-01,1\n"
            "acme,2024-01-01,2\n"
            "acme,2024-01-01,3\n"
        )

        self.assertEqual([str(error) for error in report.errors], [DUPLICATE_DATE_MESSAGE])

    def test_rejects_more_than_one_tenant(self) -> None:
        report = self._validate(
            "tenant_id,kpi_date,sessions\n"
            "acme,2024-01-01,1\n"
            "globex,2024-01-02,2\n"
        )

        self.assertFalse(report.is_valid)
        self.assertIn("acme, globex", str(report.errors[0]))
        self.assertIsNone(report.target_tenant)


if __name__ == "__main__":
    unittest.main()
