"""
TokenizerViewQt - Man hinh chinh: input editor, token list, tan suat, search.

View chi render state cua TokenizationSession va forward user input
(text edit, search query) vao session. Khong tu tinh toan gi.
"""

from typing import Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QSplitter,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from services.tokenization_session import TokenizationSession

# So dong hien thi trong bang tan suat
TOP_FREQUENCY_ROWS = 50

_MATCH_BRUSH = QBrush(QColor("#FDE68A"))
_NO_BRUSH = QBrush()


class TokenizerViewQt(QWidget):
    """Widget trung tam cua cua so tokenizer."""

    def __init__(
        self, session: TokenizationSession, parent: Optional[QWidget] = None
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._build_ui()

        session.tokens_changed.connect(self._on_tokens_changed)
        session.search_changed.connect(self._on_search_changed)
        session.input_text_replaced.connect(self._on_input_text_replaced)

        self._on_tokens_changed()
        self._on_search_changed()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)

        splitter = QSplitter(Qt.Orientation.Horizontal, self)

        # --- Left: input ---
        self.input_edit = QPlainTextEdit()
        self.input_edit.setPlaceholderText(
            "Type or paste text here, or drop a .txt / .xlsx file..."
        )
        self.input_edit.setPlainText(self._session.input_text)
        self.input_edit.textChanged.connect(self._on_editor_text_changed)
        splitter.addWidget(self.input_edit)

        # --- Right: search + tokens + frequencies ---
        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)

        search_row = QHBoxLayout()
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search tokens")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.textChanged.connect(self._session.set_search_query)
        self.match_label = QLabel()
        search_row.addWidget(self.search_edit, 1)
        search_row.addWidget(self.match_label)
        right_layout.addLayout(search_row)

        self.stats_label = QLabel()
        right_layout.addWidget(self.stats_label)

        self.token_list = QListWidget()
        self.token_list.setUniformItemSizes(True)
        right_layout.addWidget(self.token_list, 2)

        self.frequency_table = QTableWidget(0, 2)
        self.frequency_table.setHorizontalHeaderLabels(["Token", "Freq"])
        self.frequency_table.verticalHeader().setVisible(False)
        self.frequency_table.horizontalHeader().setSectionResizeMode(
            0, QHeaderView.ResizeMode.Stretch
        )
        right_layout.addWidget(self.frequency_table, 1)

        splitter.addWidget(right)
        splitter.setSizes([600, 500])
        layout.addWidget(splitter)

    @Slot()
    def _on_editor_text_changed(self) -> None:
        self._session.set_input_text(self.input_edit.toPlainText())

    @Slot(str)
    def _on_input_text_replaced(self, text: str) -> None:
        if self.input_edit.toPlainText() == text:
            return
        # Session da co text nay roi, khong can tokenize lai
        self.input_edit.blockSignals(True)
        try:
            self.input_edit.setPlainText(text)
        finally:
            self.input_edit.blockSignals(False)

    @Slot()
    def _on_tokens_changed(self) -> None:
        session = self._session
        self.token_list.clear()
        for index, token in enumerate(session.tokens):
            item = QListWidgetItem(f"{index + 1}. {token}")
            self.token_list.addItem(item)

        top = session.frequency.most_common(TOP_FREQUENCY_ROWS)
        self.frequency_table.setRowCount(len(top))
        for row, (token, count) in enumerate(top):
            self.frequency_table.setItem(row, 0, QTableWidgetItem(token))
            count_item = QTableWidgetItem(str(count))
            count_item.setTextAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
            self.frequency_table.setItem(row, 1, count_item)

        self.stats_label.setText(
            f"Tokens: {session.total_token_count:,}  |  "
            f"Unique: {session.unique_token_count:,}  |  "
            f"{session.processing_duration * 1000:.1f} ms"
        )

    @Slot()
    def _on_search_changed(self) -> None:
        session = self._session
        for index in range(self.token_list.count()):
            item = self.token_list.item(index)
            item.setBackground(
                _MATCH_BRUSH if session.is_token_matched(index) else _NO_BRUSH
            )

        if session.normalized_query:
            self.match_label.setText(f"{session.match_count} match(es)")
        else:
            self.match_label.setText("")
