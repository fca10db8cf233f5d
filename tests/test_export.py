"""CSV and XLSX rendering of lead rows."""

import io

from openpyxl import load_workbook

from crm.app.services.export import (
    EXPORT_HEADERS,
    UTF8_BOM,
    format_leads_to_xlsx,
    format_rows_to_csv,
)


class TestCsv:
    def test_bom_header_and_no_trailing_newline(self):
        text = format_rows_to_csv([["Ana", "a@b.com"]])
        assert text.startswith(UTF8_BOM + "Name,Email,Phone")
        assert text.endswith("Ana,a@b.com")
        assert "\r" not in text

    def test_quoting(self):
        text = format_rows_to_csv([['Acme, "Intl"', "line\nbreak", "plain"]])
        record = text.split("\n", 1)[1]
        assert record == '"Acme, ""Intl""","line\nbreak",plain'

    def test_empty_export_is_header_only(self):
        assert format_rows_to_csv([]) == UTF8_BOM + ",".join(EXPORT_HEADERS)


class TestXlsx:
    def test_workbook(self, db, tenant, pipeline):
        content = format_leads_to_xlsx([pipeline["hot"], pipeline["cold"]])
        ws = load_workbook(io.BytesIO(content)).active
        assert ws.title == "Leads"
        rows = list(ws.iter_rows(values_only=True))
        assert list(rows[0]) == EXPORT_HEADERS
        assert rows[1][0] == "Ana Lee"
        assert rows[1][9] == "Lead magnet"
        assert rows[1][10] == 1
        assert rows[2][7] == "Employee Tester"
        assert len(rows) == 3
