"""
Token Lens - PySide6 Main Window Entry Point

Host shell mong: menu commands (Open File, Export CSV, Export JSON, Clear),
engine picker, drag & drop file, status bar. Moi logic nam trong
TokenizationSession.
"""

import sys
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Slot
from PySide6.QtGui import (
    QAction,
    QActionGroup,
    QCloseEvent,
    QDragEnterEvent,
    QDropEvent,
    QKeySequence,
)
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
)

from config.app_settings import AppSettings
from core.logging_config import flush_logs, log_info
from core.tokenization.engine import EngineOption
from services.export_service import TokenExportFormat
from services.file_importer import SUPPORTED_EXTENSIONS
from services.settings_manager import load_app_settings, update_app_setting
from services.tokenization_session import (
    ALERT_ERROR,
    TokenizationSession,
    default_export_filename,
)
from views.tokenizer_view_qt import TokenizerViewQt

_OPEN_FILTER = "Text / Excel ({})".format(
    " ".join(f"*.{ext}" for ext in SUPPORTED_EXTENSIONS)
)


class TokenLensMainWindow(QMainWindow):
    """Main application window."""

    APP_VERSION = "1.0.0"

    def __init__(self, settings: Optional[AppSettings] = None) -> None:
        super().__init__()
        self._settings = settings or load_app_settings()

        try:
            engine_option = EngineOption(self._settings.engine_id)
        except ValueError:
            engine_option = EngineOption.SYSTEM
        if not engine_option.is_available:
            engine_option = EngineOption.SYSTEM

        self.session = TokenizationSession(
            engine_option=engine_option,
            user_dict_path=self._settings.user_dict_path or None,
            debounce_ms=self._settings.get_debounce_interval(),
            parent=self,
        )
        self.session.alert.connect(self._on_alert)
        self.session.busy_changed.connect(self._on_busy_changed)

        self.setWindowTitle(f"Token Lens {self.APP_VERSION}")
        self.setMinimumSize(900, 600)
        self.resize(1280, 800)
        self.setAcceptDrops(True)

        self.view = TokenizerViewQt(self.session, self)
        self.setCentralWidget(self.view)
        self._build_menus()

        self._busy_label = QLabel()
        self.statusBar().addPermanentWidget(self._busy_label)

        self.session.warm_up_engine()

    # ── Menus ─────────────────────────────────────────────────────
    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        self.open_action = QAction("&Open File...", self)
        self.open_action.setShortcut(QKeySequence.StandardKey.Open)
        self.open_action.triggered.connect(self._on_open_file)
        file_menu.addAction(self.open_action)

        self.export_csv_action = QAction("Export &CSV...", self)
        self.export_csv_action.triggered.connect(
            lambda: self._on_export(TokenExportFormat.CSV)
        )
        file_menu.addAction(self.export_csv_action)

        self.export_json_action = QAction("Export &JSON...", self)
        self.export_json_action.triggered.connect(
            lambda: self._on_export(TokenExportFormat.JSON)
        )
        file_menu.addAction(self.export_json_action)

        file_menu.addSeparator()
        clear_action = QAction("C&lear", self)
        clear_action.triggered.connect(self.session.clear)
        file_menu.addAction(clear_action)

        engine_menu = self.menuBar().addMenu("&Engine")
        group = QActionGroup(self)
        group.setExclusive(True)
        for option in EngineOption:
            action = QAction(option.display_name, self, checkable=True)
            action.setChecked(option is self.session.selected_engine)
            action.triggered.connect(
                lambda _checked=False, opt=option: self._on_engine_selected(opt)
            )
            group.addAction(action)
            engine_menu.addAction(action)
        self._engine_group = group

    # ── Commands ──────────────────────────────────────────────────
    @Slot()
    def _on_open_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open File", "", _OPEN_FILTER)
        if path:
            self.session.import_file(Path(path))

    def _on_export(self, export_format: TokenExportFormat) -> None:
        if not self.session.ensure_exportable():
            return

        start_dir = Path(self._settings.last_export_dir or Path.home())
        suggested = start_dir / default_export_filename(export_format)
        ext = export_format.extension
        path, _ = QFileDialog.getSaveFileName(
            self, "Export", str(suggested), f"{ext.upper()} (*.{ext})"
        )
        if not path:
            return

        destination = Path(path)
        if self.session.export(destination, export_format):
            self._settings.last_export_dir = str(destination.parent)
            update_app_setting(last_export_dir=self._settings.last_export_dir)

    def _on_engine_selected(self, option: EngineOption) -> None:
        if self.session.select_engine(option):
            self._settings.engine_id = option.value
            update_app_setting(engine_id=option.value)
        # Engine khong kha dung -> check lai engine dang dung
        for action, opt in zip(self._engine_group.actions(), EngineOption):
            action.setChecked(opt is self.session.selected_engine)

    # ── Drag & drop ───────────────────────────────────────────────
    def dragEnterEvent(self, event: QDragEnterEvent) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent) -> None:
        paths = [
            Path(url.toLocalFile())
            for url in event.mimeData().urls()
            if url.isLocalFile()
        ]
        if self.session.handle_dropped_paths(paths):
            event.acceptProposedAction()
        else:
            event.ignore()

    # ── Session feedback ──────────────────────────────────────────
    @Slot(str, str)
    def _on_alert(self, level: str, message: str) -> None:
        if level == ALERT_ERROR:
            QMessageBox.warning(self, "Token Lens", message)
        else:
            self.statusBar().showMessage(message, 5000)

    @Slot(bool, str)
    def _on_busy_changed(self, busy: bool, message: str) -> None:
        self._busy_label.setText(message if busy else "")
        for action in (self.open_action, self.export_csv_action, self.export_json_action):
            action.setEnabled(not busy)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.session.dispose()
        log_info("Token Lens closing")
        flush_logs()
        event.accept()


def main() -> None:
    """Entry point for Token Lens."""
    from config.paths import ensure_app_directories

    ensure_app_directories()

    app = QApplication(sys.argv)
    app.setApplicationName("Token Lens")

    window = TokenLensMainWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
