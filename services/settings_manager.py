"""
Settings Manager - Quan ly load/save settings cua ung dung.

File: ~/.token-lens/settings.json

API (typed):
    settings = load_app_settings()  # -> AppSettings
    save_app_settings(settings)
    update_app_setting(engine_id="simple")
"""

import json
import threading
from typing import Any

from config.paths import SETTINGS_FILE
from config.app_settings import AppSettings
from core.logging_config import log_error

# Thread-safe lock de tranh race condition khi save settings
_settings_lock = threading.Lock()


def _load_app_settings_unlocked() -> AppSettings:
    """
    Load settings tu file KHONG co lock.

    Returns:
        AppSettings instance voi values tu file + defaults
    """
    try:
        if SETTINGS_FILE.exists():
            saved = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
            if isinstance(saved, dict):
                return AppSettings.from_dict(saved)
    except (OSError, json.JSONDecodeError):
        pass
    return AppSettings()


def _save_app_settings_unlocked(settings: AppSettings) -> bool:
    """
    Save AppSettings ra file KHONG co lock.

    Merge voi existing data de bao toan extra keys.
    """
    try:
        existing_data: dict[str, Any] = {}
        try:
            if SETTINGS_FILE.exists():
                loaded = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
                if isinstance(loaded, dict):
                    existing_data = loaded
        except (OSError, json.JSONDecodeError):
            pass

        updated = {**existing_data, **settings.to_dict()}
        SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
        SETTINGS_FILE.write_text(
            json.dumps(updated, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        return True
    except OSError as e:
        log_error("Failed to save settings", e)
        return False


def load_app_settings() -> AppSettings:
    """
    Load settings tu file. File khong ton tai hoac loi -> defaults.

    Returns:
        AppSettings instance
    """
    return _load_app_settings_unlocked()


def save_app_settings(settings: AppSettings) -> bool:
    """
    Save AppSettings ra file (thread-safe).

    Returns:
        True neu save thanh cong
    """
    with _settings_lock:
        return _save_app_settings_unlocked(settings)


def update_app_setting(**kwargs: Any) -> bool:
    """
    Cap nhat mot hoac nhieu field (atomic load-modify-save).

    Returns:
        True neu save thanh cong

    Raises:
        TypeError: Key khong phai field cua AppSettings
    """
    for key in kwargs:
        if key not in AppSettings.__dataclass_fields__:
            raise TypeError(f"'{key}' is not a valid AppSettings field")

    with _settings_lock:
        settings = _load_app_settings_unlocked()
        for key, value in kwargs.items():
            setattr(settings, key, value)
        return _save_app_settings_unlocked(settings)
