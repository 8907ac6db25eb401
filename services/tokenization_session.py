"""
TokenizationSession - View-model core cua man hinh tokenizer.

So huu input text (source of truth) va cac gia tri derived:
tokens, frequency index, search result. Derived state CHI duoc
rebuild boi pure functions trong core.tokenization, khong bao gio
bi mutate truc tiep.

State machine:
    IDLE            - khong co search recompute nao dang cho
    SEARCH_PENDING  - debounce timer dang chay hoac worker dang match

Transitions:
- set_input_text(): tokenize + index + search DONG BO (khong debounce),
  tang _tokens_version de vo hieu hoa worker dang chay tren tokens cu.
- set_search_query(): query rong -> clear ngay. Nguoc lai restart
  debounce timer; khi timer fire, match chay tren QThreadPool voi
  snapshot tokens. Ket qua chi duoc apply neu query + tokens version
  van trung voi hien tai (stale-result suppression).

Import/export chay tren background worker, dung chung mot busy flag:
request moi trong luc busy bi tu choi ngay (khong queue).
Busy flag luon duoc release qua WorkerSignals.finished (emit trong finally).

Thread Safety: Moi method public PHAI goi tu main (Qt) thread.
"""

from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from time import perf_counter
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Sequence, Set, Tuple

from PySide6.QtCore import QObject, QThreadPool, Signal, Slot

from config.app_settings import DEFAULT_SEARCH_DEBOUNCE_MS
from core.logging_config import log_debug, log_error, log_info, log_warning
from core.tokenization.engine import (
    EngineOption,
    EngineUnavailableError,
    TokenizerEngine,
    create_engine,
)
from core.tokenization.frequency import FrequencyIndex, index_tokens
from core.tokenization.search import (
    EMPTY_RESULT,
    SearchResult,
    match_tokens,
    normalize_query,
)
from core.utils.qt_utils import BackgroundWorker, DebouncedTimer
from services.export_service import (
    TokenExportError,
    TokenExportFormat,
    TokenExportService,
)
from services.file_importer import (
    FileImportService,
    UnsupportedFileTypeError,
)

BUSY_MESSAGE = "Another task is still running, please try again later."
UNSUPPORTED_MESSAGE = "Only .txt / .xlsx files are supported."

ALERT_INFO = "info"
ALERT_ERROR = "error"


class SessionState(Enum):
    IDLE = "idle"
    SEARCH_PENDING = "search_pending"


def default_export_filename(
    export_format: TokenExportFormat, now: Optional[datetime] = None
) -> str:
    """Ten file goi y cho save dialog, vd: tokenizer-result-20260101-093000.csv"""
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return f"tokenizer-result-{stamp}.{TokenExportFormat(export_format).extension}"


class TokenizationSession(QObject):
    """
    Session tokenize cho mot document context.

    Signals:
        tokens_changed: tokens/frequency vua duoc rebuild
        search_changed: matched indices / match count thay doi
        busy_changed(bool, str): busy flag + status message
        alert(str, str): (level, message) - kenh thong bao duy nhat cho user
        input_text_replaced(str): input text bi thay the tu ben ngoai editor
            (import thanh cong, clear) - editor can sync lai
    """

    tokens_changed = Signal()
    search_changed = Signal()
    busy_changed = Signal(bool, str)
    alert = Signal(str, str)
    input_text_replaced = Signal(str)

    def __init__(
        self,
        initial_text: str = "",
        engine: Optional[TokenizerEngine] = None,
        engine_option: EngineOption = EngineOption.SYSTEM,
        user_dict_path: Optional[str] = None,
        import_service: Optional[FileImportService] = None,
        export_service: Optional[TokenExportService] = None,
        debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS,
        thread_pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._user_dict_path = user_dict_path
        self._selected_engine = EngineOption(engine_option)
        self._engine: TokenizerEngine = engine or create_engine(
            self._selected_engine, user_dict_path
        )
        self._import_service = import_service or FileImportService()
        self._export_service = export_service or TokenExportService()
        self._pool = thread_pool or QThreadPool.globalInstance()

        # Source of truth + derived state
        self._input_text = ""
        self._tokens: Tuple[str, ...] = ()
        self._frequency: FrequencyIndex = index_tokens(())
        self._processing_duration = 0.0

        # Search state
        self._search_query = ""
        self._normalized_query = ""
        self._search: SearchResult = EMPTY_RESULT
        self._state = SessionState.IDLE
        # Tang moi khi tokens doi. Worker so sanh de phat hien stale.
        self._tokens_version = 0
        self._search_timer = DebouncedTimer(
            max(0, debounce_ms), self._on_search_timer_fired, parent=self
        )

        # Import/export
        self._busy = False
        self._busy_message = ""
        # Giu reference toi worker cho den khi finished (tranh GC signals object)
        self._active_workers: Set[BackgroundWorker] = set()
        self._disposed = False

        self.set_input_text(initial_text)

    # ================================================================
    # Read-only properties
    # ================================================================

    @property
    def input_text(self) -> str:
        return self._input_text

    @property
    def tokens(self) -> Tuple[str, ...]:
        return self._tokens

    @property
    def frequency(self) -> FrequencyIndex:
        return self._frequency

    @property
    def token_frequencies(self) -> Dict[str, int]:
        return dict(self._frequency.counts)

    @property
    def total_token_count(self) -> int:
        return len(self._tokens)

    @property
    def unique_token_count(self) -> int:
        return self._frequency.unique

    @property
    def processing_duration(self) -> float:
        """Thoi gian tokenize lan gan nhat (giay)."""
        return self._processing_duration

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def normalized_query(self) -> str:
        return self._normalized_query

    @property
    def matched_indices(self) -> FrozenSet[int]:
        return self._search.indices

    @property
    def match_count(self) -> int:
        return self._search.count

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def busy_message(self) -> str:
        return self._busy_message

    @property
    def selected_engine(self) -> EngineOption:
        return self._selected_engine

    @property
    def debounce_interval(self) -> int:
        return self._search_timer.interval

    def set_debounce_interval(self, ms: int) -> None:
        self._search_timer.interval = max(0, ms)

    # ================================================================
    # Text + search transitions
    # ================================================================

    def set_input_text(self, text: str) -> None:
        """
        Thay input text va rebuild toan bo derived state dong bo.

        Idempotent: goi hai lan voi cung text cho ra cung state.
        """
        self._input_text = text or ""

        start = perf_counter()
        tokens = tuple(self._engine.tokenize(self._input_text))
        self._processing_duration = perf_counter() - start

        self._tokens = tokens
        self._frequency = index_tokens(tokens)
        self._tokens_version += 1
        log_debug(
            f"[Session] Tokenized {len(tokens)} tokens "
            f"({self._frequency.unique} unique) in {self._processing_duration:.4f}s"
        )
        self.tokens_changed.emit()

        self._refresh_search_for_current_query()

    def set_search_query(self, query: str) -> None:
        """
        Cap nhat search query, debounce truoc khi match.

        Query rong (sau trim) -> clear ket qua ngay, khong debounce.
        """
        self._search_timer.stop()
        self._search_query = query or ""
        self._normalized_query = normalize_query(self._search_query)

        # Highlight cu khong con dung voi query moi
        self._search = EMPTY_RESULT

        if not self._normalized_query:
            self._state = SessionState.IDLE
        else:
            self._state = SessionState.SEARCH_PENDING
            self._search_timer.start()
        self.search_changed.emit()

    def is_token_matched(self, index: int) -> bool:
        """O(1) membership check cho highlight. Index ngoai bounds -> False."""
        if index < 0 or index >= len(self._tokens):
            return False
        return index in self._search.indices

    def clear(self) -> None:
        """Menu action Clear."""
        self.set_input_text("")
        self.input_text_replaced.emit("")
        self.alert.emit(ALERT_INFO, "Input cleared.")

    def select_engine(self, option: EngineOption) -> bool:
        """
        Doi tokenizer engine va tokenize lai input hien tai.

        Returns:
            True neu da doi engine
        """
        try:
            option = EngineOption(option)
            engine = create_engine(option, self._user_dict_path)
        except EngineUnavailableError as e:
            log_warning(f"[Session] {e}")
            self.alert.emit(
                ALERT_INFO,
                f"{e.option.display_name} is coming soon; "
                f"still using {self._selected_engine.display_name}.",
            )
            return False
        except ValueError:
            self.alert.emit(ALERT_ERROR, f"Unknown tokenizer engine: {option}")
            return False

        self._engine = engine
        self._selected_engine = option
        log_info(f"[Session] Engine switched to {option.value}")
        self.set_input_text(self._input_text)
        return True

    def warm_up_engine(self) -> None:
        """Load dictionary cua engine tren background thread (neu engine ho tro)."""
        initialize = getattr(self._engine, "initialize", None)
        if callable(initialize):
            worker = BackgroundWorker(initialize)
            worker.signals.error.connect(
                lambda e: log_warning(f"[Session] Engine warm-up failed: {e}")
            )
            self._start_worker(worker)

    def _refresh_search_for_current_query(self) -> None:
        """Tokens vua doi -> match lai dong bo voi query hien tai."""
        self._search_timer.stop()
        self._state = SessionState.IDLE
        if self._normalized_query:
            self._search = match_tokens(self._tokens, self._normalized_query)
        else:
            self._search = EMPTY_RESULT
        self.search_changed.emit()

    @Slot()
    def _on_search_timer_fired(self) -> None:
        if self._disposed or not self._normalized_query:
            return

        worker = BackgroundWorker(
            _compute_search, self._tokens, self._normalized_query, self._tokens_version
        )
        worker.signals.result.connect(self._on_search_result)
        self._start_worker(worker)

    @Slot(object)
    def _on_search_result(self, payload: Tuple[int, SearchResult]) -> None:
        tokens_version, result = payload
        self._apply_search_result(result, tokens_version)

    def _apply_search_result(self, result: SearchResult, tokens_version: int) -> bool:
        """
        Apply ket qua search neu con fresh.

        Returns:
            False neu ket qua da stale (query hoac tokens da doi) va bi bo qua
        """
        if self._disposed:
            return False
        if (
            result.query != self._normalized_query
            or tokens_version != self._tokens_version
        ):
            log_debug(f"[Session] Discard stale search result for '{result.query}'")
            return False

        self._search = result
        if not self._search_timer.is_active():
            self._state = SessionState.IDLE
        self.search_changed.emit()
        return True

    # ================================================================
    # Import / export
    # ================================================================

    def import_file(self, path: Path, ignored_count: int = 0) -> bool:
        """
        Import file tren background worker. Thanh cong -> set_input_text().

        Args:
            path: File .txt / .xlsx
            ignored_count: So file bi bo qua (drag & drop nhieu file)

        Returns:
            True neu request duoc chap nhan (ket qua bao qua alert)
        """
        path = Path(path)
        if self._busy:
            self._report_error("Importer", BUSY_MESSAGE)
            return False

        if not self._import_service.can_import(path):
            self._report_error("Importer", UNSUPPORTED_MESSAGE)
            return False

        log_info(f"[Importer] Start importing: {path}")
        return self._run_busy_task(
            source="Importer",
            busy_message=f"Importing {path.name}...",
            fn=partial(self._import_service.import_file, path),
            on_success=partial(self._on_import_success, path, ignored_count),
            error_message=partial(_import_error_message, path),
        )

    def handle_dropped_paths(self, paths: Iterable[Path]) -> bool:
        """
        Xu ly file keo tha vao cua so: chi import file dau tien.

        Returns:
            True neu nhan xu ly drop nay
        """
        if self._busy:
            self._report_error("Importer", BUSY_MESSAGE)
            return False

        file_paths = [Path(p) for p in paths]
        if not file_paths:
            self._report_error("Importer", UNSUPPORTED_MESSAGE)
            return False

        return self.import_file(file_paths[0], ignored_count=len(file_paths) - 1)

    def export(self, destination: Path, export_format: TokenExportFormat) -> bool:
        """
        Export tokens hien tai ra CSV/JSON tren background worker.

        Returns:
            True neu request duoc chap nhan
        """
        destination = Path(destination)
        export_format = TokenExportFormat(export_format)

        if not self.ensure_exportable():
            return False

        log_info(f"[Exporter] Start exporting: {destination}")
        return self._run_busy_task(
            source="Exporter",
            busy_message=f"Exporting {destination.name}...",
            fn=partial(
                self._export_service.export,
                list(self._tokens),
                destination,
                export_format,
            ),
            on_success=partial(self._on_export_success, destination),
            error_message=partial(_export_error_message, destination),
        )

    def ensure_exportable(self) -> bool:
        """
        Kiem tra co the export ngay khong (co tokens, khong busy).
        Khong duoc -> bao alert va tra ve False.
        """
        if not self._tokens:
            self.alert.emit(ALERT_INFO, "No tokenization results to export yet.")
            return False
        if self._busy:
            self._report_error("Exporter", BUSY_MESSAGE)
            return False
        return True

    def dispose(self) -> None:
        """Dung timer, bo qua moi ket qua den sau. Goi khi dong cua so."""
        self._disposed = True
        self._search_timer.stop()

    def _run_busy_task(
        self,
        source: str,
        busy_message: str,
        fn: Callable[[], object],
        on_success: Callable[[object], None],
        error_message: Callable[[Exception], str],
    ) -> bool:
        if self._busy:
            self._report_error(source, BUSY_MESSAGE)
            return False

        self._set_busy(True, busy_message)

        def _on_error(exc: Exception) -> None:
            self._report_error(source, error_message(exc), exc)

        worker = BackgroundWorker(fn)
        worker.signals.result.connect(on_success)
        worker.signals.error.connect(_on_error)
        worker.signals.finished.connect(self._release_busy)
        self._start_worker(worker)
        return True

    def _start_worker(self, worker: BackgroundWorker) -> None:
        self._active_workers.add(worker)
        worker.signals.finished.connect(partial(self._active_workers.discard, worker))
        self._pool.start(worker)

    @Slot()
    def _release_busy(self) -> None:
        self._set_busy(False, "")

    def _set_busy(self, busy: bool, message: str) -> None:
        self._busy = busy
        self._busy_message = message
        self.busy_changed.emit(busy, message)

    def _on_import_success(self, path: Path, ignored_count: int, content: object) -> None:
        if self._disposed:
            return
        text = str(content)
        self.set_input_text(text)
        self.input_text_replaced.emit(text)

        if ignored_count > 0:
            message = f"Imported {path.name}, ignored {ignored_count} other file(s)."
        else:
            message = f"Imported {path.name}"
        log_info(f"[Importer] Import succeeded: {path.name}")
        self.alert.emit(ALERT_INFO, message)

    def _on_export_success(self, destination: Path, _result: object) -> None:
        log_info(f"[Exporter] Export succeeded: {destination.name}")
        self.alert.emit(ALERT_INFO, f"Exported to {destination.name}")

    def _report_error(
        self, source: str, message: str, exc: Optional[BaseException] = None
    ) -> None:
        if exc is not None:
            log_error(f"[{source}] {message}", exc)
        else:
            log_warning(f"[{source}] {message}")
        self.alert.emit(ALERT_ERROR, message)


def _compute_search(
    tokens: Sequence[str], query: str, tokens_version: int
) -> Tuple[int, SearchResult]:
    """Chay tren worker thread - chi doc snapshot, khong dung session state."""
    return tokens_version, match_tokens(tokens, query)


def _import_error_message(path: Path, error: Exception) -> str:
    if isinstance(error, UnsupportedFileTypeError):
        return UNSUPPORTED_MESSAGE
    return f"Failed to import {path.name}: {error}"


def _export_error_message(destination: Path, error: Exception) -> str:
    if isinstance(error, TokenExportError):
        return error.message
    return f"Failed to export {destination.name}: {error}"


__all__ = [
    "ALERT_ERROR",
    "ALERT_INFO",
    "BUSY_MESSAGE",
    "SessionState",
    "TokenizationSession",
    "default_export_filename",
]
