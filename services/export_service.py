"""
Token Export Service - Xuat tokens + tan suat ra CSV hoac JSON.

CSV:
    token,freq
    <token>,<count>      # moi token unique mot dong, thu tu first-occurrence

JSON:
    {"tokens": [...tat ca tokens...], "frequencies": {"token": count}}

Ghi file atomic: ghi vao temp file cung thu muc roi os.replace(),
neu loi thi xoa temp file, file dich khong bi ghi do dang.
"""

import csv
import io
import json
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Dict, Sequence

from core.logging_config import log_info
from core.tokenization.frequency import build_frequency_map

CSV_HEADER = ("token", "freq")


class TokenExportFormat(str, Enum):
    """Cac dinh dang export ho tro."""

    CSV = "csv"
    JSON = "json"

    @property
    def extension(self) -> str:
        return self.value


class TokenExportError(Exception):
    """Loi ghi file export (I/O, permission...)."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.message = message
        self.path = path


def build_csv_text(tokens: Sequence[str], frequencies: Dict[str, int]) -> str:
    """
    Build noi dung CSV. Quoting chuan (csv.QUOTE_MINIMAL):
    field chua dau phay, dau ngoac kep, xuong dong se duoc bao trong "",
    dau " ben trong duoc nhan doi.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    # QUOTE_MINIMAL chi xet ky tu trong lineterminator, "\r" don le can ep quote
    quoted_writer = csv.writer(
        buffer, lineterminator="\n", quoting=csv.QUOTE_NONNUMERIC
    )
    writer.writerow(CSV_HEADER)
    # frequencies giu thu tu first-occurrence (dict insertion order)
    for token in dict.fromkeys(tokens):
        row_writer = quoted_writer if "\r" in token else writer
        row_writer.writerow((token, frequencies.get(token, 0)))
    return buffer.getvalue()


def build_json_text(tokens: Sequence[str], frequencies: Dict[str, int]) -> str:
    payload = {
        "tokens": list(tokens),
        "frequencies": frequencies,
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


class TokenExportService:
    """Service export tokens ra file."""

    def export(
        self,
        tokens: Sequence[str],
        destination: Path,
        export_format: TokenExportFormat,
    ) -> Path:
        """
        Export tokens + frequencies ra destination.

        Args:
            tokens: Token sequence (giu ca duplicates)
            destination: Duong dan file dich
            export_format: CSV hoac JSON

        Returns:
            Path file da ghi

        Raises:
            TokenExportError: Khi ghi file that bai
        """
        destination = Path(destination)
        export_format = TokenExportFormat(export_format)
        frequencies = build_frequency_map(tokens)

        if export_format is TokenExportFormat.CSV:
            content = build_csv_text(tokens, frequencies)
        else:
            content = build_json_text(tokens, frequencies)

        _atomic_write_text(destination, content)
        log_info(
            f"[Exporter] Wrote {len(tokens)} tokens ({len(frequencies)} unique) "
            f"to {destination}"
        )
        return destination


def _atomic_write_text(destination: Path, content: str) -> None:
    """Ghi text vao temp file cung thu muc roi os.replace() sang destination."""
    tmp_path = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
        )
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_path, destination)
    except OSError as e:
        if tmp_path is not None:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
        raise TokenExportError(
            f"Failed to export {destination.name}: {e}", destination
        ) from e
