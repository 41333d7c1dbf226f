from __future__ import annotations

import unittest

from app.parsers.kpi_csv_parser import CSVStructureError, detect_delimiter, parse_kpi_csv


class TestDetectDelimiter(unittest.TestCase):
    def test_semicolon_only_without_commas(self) -> None:
        self.assertEqual(detect_delimiter("tenant_id;kpi_date;sessions"), ";")
        self.assertEqual(detect_delimiter("tenant_id,kpi_date;sessions"), ",")
        self.assertEqual(detect_delimiter("tenant_id"), ",")


class TestParseKPICSV(unittest.TestCase):
    def test_parses_core_columns_and_metrics(self) -> None:
        parsed = parse_kpi_csv(
            "tenant_id,site_id,kpi_date,sessions,revenue\n"
            "acme,north,2024-01-01,120,99.5\n"
            "acme,,2024-01-02,130,100\n"
        )

        self.assertEqual(parsed.headers, ["tenant_id", "site_id", "kpi_date", "sessions", "revenue"])
        self.assertEqual(parsed.delimiter, ",")
        self.assertEqual(len(parsed.rows), 2)

        first, second = parsed.rows
        self.assertEqual(first.line_number, 2)
        self.assertEqual(first.tenant_id, "acme")
        self.assertEqual(first.site_id, "north")
        self.assertEqual(first.kpi_date, "2024-01-01")
        self.assertEqual(first.metrics, {"sessions": "120", "revenue": "99.5"})
        self.assertEqual(second.line_number, 3)
        self.assertIsNone(second.site_id)

    def test_strips_bom_and_handles_crlf(self) -> None:
        parsed = parse_kpi_csv("\ufefftenant_id,kpi_date,sessions\r\nacme,2024-01-01,5\r\n")

        self.assertEqual(parsed.headers[0], "tenant_id")
        self.assertEqual(parsed.rows[0].tenant_id, "acme")

    def test_semicolon_delimited_file(self) -> None:
        parsed = parse_kpi_csv("tenant_id;kpi_date;sessions\nacme;2024-01-01;7\n")

        self.assertEqual(parsed.delimiter, ";")
        self.assertEqual(parsed.rows[0].metrics, {"sessions": "7"})

    def test_quoted_field_may_contain_delimiter(self) -> None:
        parsed = parse_kpi_csv('tenant_id,kpi_date,label\nacme,2024-01-01,"north, east"\n')

        self.assertEqual(parsed.rows[0].metrics["label"], "north, east")

    def test_unterminated_quote_does_not_swallow_following_lines(self) -> None:
        parsed = parse_kpi_csv(
            "tenant_id,kpi_date,sessions\n"
            't1,2024-01-01,"5\n'
            "t1,2024-01-02,7\n"
            "t1,2024-01-03,9\n"
        )

        self.assertEqual(len(parsed.rows), 3)
        self.assertEqual([row.kpi_date for row in parsed.rows], ["2024-01-01", "2024-01-02", "2024-01-03"])
        self.assertEqual([row.line_number for row in parsed.rows], [2, 3, 4])
        self.assertEqual(parsed.rows[0].metrics["sessions"], "5")
        self.assertEqual(parsed.rows[2].metrics["sessions"], "9")

    def test_trims_whitespace_and_stray_quotes(self) -> None:
        parsed = parse_kpi_csv('tenant_id, kpi_date ,sessions\n acme ,"2024-01-01", 12 \n')

        self.assertEqual(parsed.headers, ["tenant_id", "kpi_date", "sessions"])
        self.assertEqual(parsed.rows[0].tenant_id, "acme")
        self.assertEqual(parsed.rows[0].kpi_date, "2024-01-01")
        self.assertEqual(parsed.rows[0].metrics["sessions"], "12")

    def test_skips_blank_lines_repeated_headers_and_empty_rows(self) -> None:
        parsed = parse_kpi_csv(
            "tenant_id,kpi_date,sessions\n"
            "\n"
            "acme,2024-01-01,1\n"
            "tenant_id,kpi_date,sessions\n"
            ",,\n"
            "acme,2024-01-02,2\n"
        )

        self.assertEqual([row.kpi_date for row in parsed.rows], ["2024-01-01", "2024-01-02"])
        self.assertEqual([row.line_number for row in parsed.rows], [2, 3])

    def test_short_rows_are_padded_with_empty_strings(self) -> None:
        parsed = parse_kpi_csv("tenant_id,kpi_date,sessions,revenue\nacme,2024-01-01,4\n")

        self.assertEqual(parsed.rows[0].metrics, {"sessions": "4", "revenue": ""})

    def test_header_only_file_is_rejected(self) -> None:
        with self.assertRaises(CSVStructureError) as ctx:
            parse_kpi_csv("tenant_id,kpi_date,sessions\n\n")

        self.assertEqual(str(ctx.exception), "The file appears to be empty or contains only headers.")

    def test_file_without_data_rows_is_rejected(self) -> None:
        with self.assertRaises(CSVStructureError) as ctx:
            parse_kpi_csv("tenant_id,kpi_date\ntenant_id,kpi_date\n,\n")

        self.assertEqual(str(ctx.exception), "No valid data records found in the CSV (excluding headers).")


if __name__ == "__main__":
    unittest.main()
