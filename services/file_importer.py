"""
File Importer - Doc file .txt / .xlsx thanh plain text cho tokenizer.

FileImportService chon importer dau tien co canHandle() == True.
Moi loi deu la subclass cua FileImportError, mang message
doc duoc cho user va chain exception goc (raise ... from).

Error taxonomy:
- UnsupportedFileTypeError: extension khong ho tro
- FileReadError: loi I/O
- UnsupportedEncodingError: khong decode duoc text
- FileParseError: file xlsx hong / khong doc duoc
- EmptyWorkbookError: workbook khong co dong nao co du lieu
- UnsupportedCellError: cell loi (#N/A, #DIV/0!...) hoac kieu khong ho tro
"""

import codecs
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from core.logging_config import log_debug

SUPPORTED_EXTENSIONS = ("txt", "xlsx")

# Thu tu thu encoding cho file .txt khong co BOM
_FALLBACK_ENCODINGS = ("utf-8", "gb18030")


class FileImportError(Exception):
    """Base class cho moi loi import."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.path = path


class UnsupportedFileTypeError(FileImportError):
    def __init__(self, path: Optional[Path] = None):
        super().__init__("Unsupported file type. Please choose a TXT or XLSX file.", path)


class FileReadError(FileImportError):
    pass


class UnsupportedEncodingError(FileImportError):
    pass


class FileParseError(FileImportError):
    pass


class EmptyWorkbookError(FileImportError):
    pass


class UnsupportedCellError(FileImportError):
    pass


class FileImporter(Protocol):
    """Importer cho mot dinh dang file."""

    def can_handle(self, path: Path) -> bool: ...

    def import_contents(self, path: Path) -> str: ...


class TextFileImporter:
    """Doc file .txt. UTF-8 (co/khong BOM), UTF-16 co BOM, roi GB18030."""

    def can_handle(self, path: Path) -> bool:
        return path.suffix.lower() == ".txt"

    def import_contents(self, path: Path) -> str:
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise FileReadError(f"Could not read {path.name}: {e}", path) from e

        return decode_text(raw, path)


def decode_text(raw: bytes, path: Optional[Path] = None) -> str:
    """
    Decode bytes theo BOM neu co, nguoc lai thu lan luot _FALLBACK_ENCODINGS.

    Raises:
        UnsupportedEncodingError: Khi khong encoding nao decode duoc
    """
    if raw.startswith(codecs.BOM_UTF8):
        candidates: Sequence[str] = ("utf-8-sig",)
    elif raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        candidates = ("utf-16",)
    else:
        candidates = _FALLBACK_ENCODINGS

    for encoding in candidates:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            log_debug(f"[Importer] {encoding} decode failed for {path}")

    name = path.name if path else "file"
    raise UnsupportedEncodingError(
        f"Could not decode {name}: unsupported text encoding "
        f"(tried {', '.join(candidates)})",
        path,
    )


class ExcelFileImporter:
    """
    Doc file .xlsx bang openpyxl (read-only, lay cached values).

    Moi dong co du lieu -> mot dong text, cac cell noi bang tab.
    Duyet tat ca sheets theo thu tu trong workbook.
    """

    def can_handle(self, path: Path) -> bool:
        return path.suffix.lower() == ".xlsx"

    def import_contents(self, path: Path) -> str:
        try:
            workbook = load_workbook(path, read_only=True, data_only=True)
        except OSError as e:
            raise FileReadError(f"Could not read {path.name}: {e}", path) from e
        except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as e:
            raise FileParseError(f"Could not parse {path.name}: {e}", path) from e

        lines: List[str] = []
        try:
            for sheet in workbook.worksheets:
                for row in sheet.iter_rows():
                    values = [
                        _cell_text(cell, sheet.title, path).strip() for cell in row
                    ]
                    if not any(values):
                        continue
                    lines.append("\t".join(values).rstrip("\t"))
        except (zipfile.BadZipFile, KeyError, ValueError) as e:
            raise FileParseError(f"Could not parse {path.name}: {e}", path) from e
        finally:
            workbook.close()

        if not lines:
            raise EmptyWorkbookError(f"{path.name} contains no data", path)
        return "\n".join(lines)


def _cell_text(cell: Any, sheet_title: str, path: Path) -> str:
    """Chuyen gia tri cell thanh text. Cell loi/kieu la -> UnsupportedCellError."""
    value = cell.value
    if value is None:
        return ""

    if getattr(cell, "data_type", None) == "e":
        coordinate = getattr(cell, "coordinate", "?")
        raise UnsupportedCellError(
            f"Cell {sheet_title}!{coordinate} contains an error value ({value})", path
        )

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    coordinate = getattr(cell, "coordinate", "?")
    raise UnsupportedCellError(
        f"Cell {sheet_title}!{coordinate} has unsupported content "
        f"({type(value).__name__})",
        path,
    )


class FileImportService:
    """
    Service tong hop cac importer, tu chon importer theo extension.
    """

    def __init__(self, importers: Optional[List[FileImporter]] = None) -> None:
        self._importers: List[FileImporter] = (
            importers
            if importers is not None
            else [TextFileImporter(), ExcelFileImporter()]
        )

    def can_import(self, path: Path) -> bool:
        return any(importer.can_handle(Path(path)) for importer in self._importers)

    def import_file(self, path: Path) -> str:
        """
        Import file va tra ve plain text.

        Raises:
            FileImportError: (subclass) khi khong import duoc
        """
        path = Path(path)
        for importer in self._importers:
            if importer.can_handle(path):
                return importer.import_contents(path)
        raise UnsupportedFileTypeError(path)
