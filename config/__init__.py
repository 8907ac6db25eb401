"""
Config Package - Chứa các constants và cấu hình của ứng dụng

Bao gồm:
- paths: Đường dẫn app data, log dir, settings file
- app_settings: Typed settings dataclass
"""

from config.app_settings import AppSettings, DEFAULT_SEARCH_DEBOUNCE_MS

__all__ = [
    "AppSettings",
    "DEFAULT_SEARCH_DEBOUNCE_MS",
]
