"""
Unit tests cho services/file_importer.py

Coverage:
- TextFileImporter: UTF-8, UTF-8 BOM, UTF-16 BOM, GB18030, bytes khong decode duoc
- ExcelFileImporter: nhieu sheet, cell rong, so/bool/date, cell loi, workbook rong/hong
- FileImportService: chon importer theo extension, extension khong ho tro
"""

import codecs
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from services.file_importer import (
    EmptyWorkbookError,
    ExcelFileImporter,
    FileImportError,
    FileImportService,
    FileParseError,
    FileReadError,
    TextFileImporter,
    UnsupportedCellError,
    UnsupportedEncodingError,
    UnsupportedFileTypeError,
    decode_text,
)


def _write_workbook(path: Path, sheets):
    """sheets: list (title, rows). Sheet dau tien dung active sheet."""
    workbook = Workbook()
    first = True
    for title, rows in sheets:
        sheet = workbook.active if first else workbook.create_sheet()
        sheet.title = title
        first = False
        for row in rows:
            sheet.append(row)
    workbook.save(path)
    return path


class TestTextFileImporter:
    def setup_method(self):
        self.importer = TextFileImporter()

    def test_utf8(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_bytes("你好，world".encode("utf-8"))
        assert self.importer.import_contents(path) == "你好，world"

    def test_utf8_bom_is_stripped(self, tmp_path):
        path = tmp_path / "bom.txt"
        path.write_bytes(codecs.BOM_UTF8 + "hello".encode("utf-8"))
        assert self.importer.import_contents(path) == "hello"

    def test_utf16_with_bom(self, tmp_path):
        path = tmp_path / "u16.txt"
        path.write_bytes("hello 你好".encode("utf-16"))
        assert self.importer.import_contents(path) == "hello 你好"

    def test_gb18030_fallback(self, tmp_path):
        path = tmp_path / "gb.txt"
        path.write_bytes("你好世界".encode("gb18030"))
        assert self.importer.import_contents(path) == "你好世界"

    def test_undecodable_bytes(self, tmp_path):
        path = tmp_path / "garbage.txt"
        path.write_bytes(b"\xff\xff\xff\x80")
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            self.importer.import_contents(path)
        assert exc_info.value.path == path
        assert "garbage.txt" in exc_info.value.message

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError):
            self.importer.import_contents(tmp_path / "missing.txt")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")
        assert self.importer.import_contents(path) == ""

    def test_can_handle_case_insensitive(self):
        assert self.importer.can_handle(Path("NOTES.TXT"))
        assert not self.importer.can_handle(Path("notes.md"))


class TestDecodeText:
    def test_plain_ascii(self):
        assert decode_text(b"abc") == "abc"

    def test_error_without_path(self):
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            decode_text(b"\xff\xff\xff\x80")
        assert exc_info.value.path is None


class TestExcelFileImporter:
    def setup_method(self):
        self.importer = ExcelFileImporter()

    def test_rows_become_tab_separated_lines(self, tmp_path):
        path = _write_workbook(
            tmp_path / "book.xlsx",
            [("Sheet1", [["你好", "world"], ["a", None, "c"]])],
        )
        assert self.importer.import_contents(path) == "你好\tworld\na\t\tc"

    def test_all_sheets_in_order(self, tmp_path):
        path = _write_workbook(
            tmp_path / "multi.xlsx",
            [("First", [["one"]]), ("Second", [["two"]])],
        )
        assert self.importer.import_contents(path) == "one\ntwo"

    def test_blank_rows_are_skipped(self, tmp_path):
        path = _write_workbook(
            tmp_path / "blank.xlsx",
            [("Sheet1", [["top"], [None], ["  "], ["bottom"]])],
        )
        assert self.importer.import_contents(path) == "top\nbottom"

    def test_number_and_bool_formatting(self, tmp_path):
        path = _write_workbook(
            tmp_path / "numbers.xlsx",
            [("Sheet1", [[42, 3.5, 2.0, True, False]])],
        )
        assert self.importer.import_contents(path) == "42\t3.5\t2\tTRUE\tFALSE"

    def test_date_cell(self, tmp_path):
        path = _write_workbook(
            tmp_path / "dates.xlsx",
            [("Sheet1", [[datetime(2024, 1, 2, 3, 4, 5)]])],
        )
        assert self.importer.import_contents(path).startswith("2024-01-02")

    def test_error_cell_is_rejected(self, tmp_path):
        path = _write_workbook(
            tmp_path / "errors.xlsx",
            [("Data", [["ok", "#N/A"]])],
        )
        with pytest.raises(UnsupportedCellError) as exc_info:
            self.importer.import_contents(path)
        assert "Data!" in exc_info.value.message

    def test_empty_workbook(self, tmp_path):
        path = _write_workbook(tmp_path / "empty.xlsx", [("Sheet1", [])])
        with pytest.raises(EmptyWorkbookError):
            self.importer.import_contents(path)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "corrupt.xlsx"
        path.write_bytes(b"this is not a zip archive")
        with pytest.raises(FileParseError):
            self.importer.import_contents(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError):
            self.importer.import_contents(tmp_path / "missing.xlsx")


class TestFileImportService:
    def setup_method(self):
        self.service = FileImportService()

    def test_dispatches_by_extension(self, tmp_path):
        txt = tmp_path / "a.txt"
        txt.write_text("text file", encoding="utf-8")
        xlsx = _write_workbook(tmp_path / "b.xlsx", [("Sheet1", [["sheet file"]])])

        assert self.service.import_file(txt) == "text file"
        assert self.service.import_file(xlsx) == "sheet file"

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF")
        assert not self.service.can_import(path)
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            self.service.import_file(path)
        assert isinstance(exc_info.value, FileImportError)

    def test_accepts_string_path(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("x", encoding="utf-8")
        assert self.service.can_import(str(path))
        assert self.service.import_file(str(path)) == "x"

    def test_custom_importer_list(self, tmp_path):
        service = FileImportService(importers=[TextFileImporter()])
        assert not service.can_import(tmp_path / "a.xlsx")
