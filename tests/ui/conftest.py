"""Cau hinh pytest-qt cho UI tests.

Main window dung simple engine de khong phai load dictionary jieba,
settings khong bao gio ghi ra ~/.token-lens.
"""

import pytest
from unittest.mock import patch

from config.app_settings import AppSettings


@pytest.fixture
def main_window(qtbot):
    """TokenLensMainWindow voi settings tam, khong dung settings.json that."""
    from main_window import TokenLensMainWindow

    with (
        patch("main_window.update_app_setting") as update_setting,
        patch("main_window.QMessageBox.warning") as warning,
    ):
        window = TokenLensMainWindow(
            settings=AppSettings(engine_id="simple", search_debounce_ms=20)
        )
        qtbot.addWidget(window)
        window.update_setting_mock = update_setting
        window.warning_mock = warning
        yield window
        qtbot.waitUntil(lambda: not window.session.is_busy, timeout=5000)
