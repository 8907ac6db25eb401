"""
AppSettings - Typed settings dataclass cho Token Lens.

Thay the Dict[str, Any] bang dataclass co type hints, validation va default values.
Tat ca settings duoc truy cap qua typed fields thay vi string keys.

Modules:
- AppSettings: Dataclass chua toan bo application settings
- from_dict(): Tao AppSettings tu dict (doc tu settings.json)
- to_dict(): Chuyen doi AppSettings thanh dict de luu xuong file

Su dung:
    settings = load_app_settings()
    session = TokenizationSession(debounce_ms=settings.get_debounce_interval())
"""

import typing
from dataclasses import dataclass
from typing import Any


# Debounce mac dinh cho search (ms)
DEFAULT_SEARCH_DEBOUNCE_MS = 200


@dataclass
class AppSettings:
    """
    Typed settings cho Token Lens.

    Moi field tuong ung voi mot key trong settings.json.
    Default values duoc su dung khi settings.json chua co key tuong ung.
    """

    # --- Tokenizer Settings ---
    # Engine ID dang su dung ("system", "simple", "remote")
    engine_id: str = "system"
    # Duong dan user dictionary cho jieba (rong = khong dung)
    user_dict_path: str = ""

    # --- Search Settings ---
    # Thoi gian debounce truoc khi chay search (ms)
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS

    # --- Export Settings ---
    # Thu muc export gan nhat, dung lam default cho save dialog
    last_export_dir: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        """
        Tao AppSettings tu dict, chi lay cac keys trung voi field names.

        Neu value co type khong khop voi field declaration,
        se bo qua va dung default thay the.

        Args:
            data: Dict settings (thuong tu settings.json)

        Returns:
            AppSettings instance voi values tu dict, fallback ve defaults
        """
        field_types: dict[str, Any] = {
            f.name: f.type for f in cls.__dataclass_fields__.values()
        }

        filtered: dict[str, Any] = {}
        for key, value in data.items():
            if key not in field_types:
                continue

            expected_type = field_types[key]

            # Xu ly truong hop type annotation la string (forward ref)
            if isinstance(expected_type, str):
                type_map = {"str": str, "bool": bool, "int": int, "float": float}
                expected_type = type_map.get(expected_type, str)

            # isinstance(True, int) == True, nhung settings khong chap nhan bool cho int
            if expected_type is int and isinstance(value, bool):
                continue

            origin = typing.get_origin(expected_type)
            check_type = origin if origin is not None else expected_type

            if isinstance(value, check_type):
                filtered[key] = value

        return cls(**filtered)

    def to_dict(self) -> dict[str, Any]:
        """
        Chuyen doi AppSettings thanh dict de luu xuong file.

        Returns:
            Dict voi toan bo settings
        """
        return {
            "engine_id": self.engine_id,
            "user_dict_path": self.user_dict_path,
            "search_debounce_ms": self.search_debounce_ms,
            "last_export_dir": self.last_export_dir,
        }

    def get_debounce_interval(self) -> int:
        """Debounce interval (ms), khong am."""
        return max(0, self.search_debounce_ms)
