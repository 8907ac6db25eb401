"""
Unit tests cho services/export_service.py

Coverage:
- CSV: header, thu tu first-occurrence, quoting dau phay / ngoac kep / xuong dong
- JSON: tokens giu duplicates, frequencies dung, khong escape unicode
- Atomic write: loi ghi -> TokenExportError, khong de lai temp file
"""

import csv
import io
import json
from unittest.mock import patch

import pytest

from services.export_service import (
    CSV_HEADER,
    TokenExportError,
    TokenExportFormat,
    TokenExportService,
    build_csv_text,
    build_json_text,
)


@pytest.fixture
def service():
    return TokenExportService()


class TestCsvExport:
    def test_quoting_and_first_occurrence_order(self, service, tmp_path):
        tokens = ["hello", "value,with,comma", "value,with,comma", 'value"quote']
        destination = tmp_path / "out.csv"

        service.export(tokens, destination, TokenExportFormat.CSV)

        content = destination.read_text(encoding="utf-8")
        assert content == (
            "token,freq\n"
            "hello,1\n"
            '"value,with,comma",2\n'
            '"value""quote",1\n'
        )

        rows = list(csv.reader(io.StringIO(content)))
        assert rows == [
            ["token", "freq"],
            ["hello", "1"],
            ["value,with,comma", "2"],
            ['value"quote', "1"],
        ]

    def test_newline_in_token_is_quoted(self):
        content = build_csv_text(["a\nb"], {"a\nb": 1})
        rows = list(csv.reader(io.StringIO(content)))
        assert rows[1] == ["a\nb", "1"]
        assert '"a\nb"' in content

    def test_carriage_return_in_token_is_quoted(self, service, tmp_path):
        destination = tmp_path / "cr.csv"
        service.export(["a\rb", "plain"], destination, TokenExportFormat.CSV)

        with open(destination, encoding="utf-8", newline="") as f:
            content = f.read()
        assert content == 'token,freq\n"a\rb",1\nplain,1\n'
        rows = list(csv.reader(io.StringIO(content, newline="")))
        assert rows[1:] == [["a\rb", "1"], ["plain", "1"]]

    def test_header_only_for_empty_tokens(self):
        assert build_csv_text([], {}) == ",".join(CSV_HEADER) + "\n"

    def test_unicode_written_as_utf8(self, service, tmp_path):
        destination = tmp_path / "zh.csv"
        service.export(["你", "好", "你"], destination, TokenExportFormat.CSV)
        assert destination.read_text(encoding="utf-8") == "token,freq\n你,2\n好,1\n"


class TestJsonExport:
    def test_tokens_and_frequencies(self, service, tmp_path):
        tokens = ["你", "好", "world", "123", "你"]
        destination = tmp_path / "out.json"

        service.export(tokens, destination, TokenExportFormat.JSON)

        payload = json.loads(destination.read_text(encoding="utf-8"))
        assert payload["tokens"] == tokens
        assert payload["frequencies"] == {"你": 2, "好": 1, "world": 1, "123": 1}

    def test_unicode_not_escaped(self):
        text = build_json_text(["你"], {"你": 1})
        assert "你" in text
        assert "\\u" not in text

    def test_accepts_string_format(self, service, tmp_path):
        destination = tmp_path / "out.json"
        service.export(["a"], destination, "json")
        assert json.loads(destination.read_text(encoding="utf-8"))["tokens"] == ["a"]


class TestAtomicWrite:
    def test_overwrites_existing_file(self, service, tmp_path):
        destination = tmp_path / "out.csv"
        destination.write_text("old content", encoding="utf-8")

        service.export(["new"], destination, TokenExportFormat.CSV)

        assert destination.read_text(encoding="utf-8") == "token,freq\nnew,1\n"

    def test_missing_directory_raises_export_error(self, service, tmp_path):
        destination = tmp_path / "missing" / "out.csv"

        with pytest.raises(TokenExportError) as exc_info:
            service.export(["a"], destination, TokenExportFormat.CSV)

        assert exc_info.value.path == destination
        assert "out.csv" in exc_info.value.message
        assert not destination.exists()

    def test_failed_replace_leaves_no_temp_file(self, service, tmp_path):
        destination = tmp_path / "out.json"

        with patch("services.export_service.os.replace", side_effect=PermissionError("denied")):
            with pytest.raises(TokenExportError):
                service.export(["a"], destination, TokenExportFormat.JSON)

        assert list(tmp_path.iterdir()) == []

    def test_returns_destination(self, service, tmp_path):
        destination = tmp_path / "out.csv"
        assert service.export(["a"], destination, TokenExportFormat.CSV) == destination


class TestTokenExportFormat:
    def test_extensions(self):
        assert TokenExportFormat.CSV.extension == "csv"
        assert TokenExportFormat.JSON.extension == "json"

    def test_invalid_format(self, service, tmp_path):
        with pytest.raises(ValueError):
            service.export(["a"], tmp_path / "out.xml", "xml")
