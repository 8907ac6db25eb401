"""
Qt Utilities - Debounce timer va background worker cho PySide6

Sử dụng signal/slot pattern và QTimer cho UI-safe operations.
Ket qua tu worker thread duoc marshal ve main thread qua Qt Signals.
"""

import logging
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QTimer, Signal, Slot

logger = logging.getLogger(__name__)


class DebouncedTimer:
    """
    Debounced timer sử dụng QTimer.
    Khi start() được gọi nhiều lần, chỉ lần cuối cùng
    được execute sau khi hết delay.

    Usage:
        timer = DebouncedTimer(200, self._run_search)
        timer.start()  # Reset timer mỗi lần gọi
        timer.stop()   # Hủy timer
    """

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[[], None],
        parent: Optional[QObject] = None,
    ):
        """
        Args:
            interval_ms: Delay tính bằng milliseconds
            callback: Function sẽ được gọi sau delay
            parent: QObject parent (cho memory management)
        """
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(callback)

    def start(self, interval_ms: Optional[int] = None) -> None:
        """
        Start/restart timer. Nếu timer đang chạy sẽ bị reset.

        Args:
            interval_ms: Override interval (optional)
        """
        if interval_ms is not None:
            self._timer.setInterval(interval_ms)
        self._timer.start()

    def stop(self) -> None:
        """Cancel timer."""
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()

    @property
    def interval(self) -> int:
        return self._timer.interval()

    @interval.setter
    def interval(self, ms: int) -> None:
        self._timer.setInterval(ms)


class WorkerSignals(QObject):
    """
    Signals cho QRunnable workers.

    error mang theo exception object de caller tu build message.
    finished LUON duoc emit (ke ca khi loi) - dung de release busy flag.
    """

    finished = Signal()
    error = Signal(object)
    result = Signal(object)


class BackgroundWorker(QRunnable):
    """
    Generic background worker sử dụng QThreadPool.

    Usage:
        worker = BackgroundWorker(heavy_work, arg)
        worker.signals.result.connect(self._on_result)
        worker.signals.error.connect(self._on_error)
        QThreadPool.globalInstance().start(worker)
    """

    def __init__(self, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()
        self.setAutoDelete(True)

    @Slot()
    def run(self) -> None:
        """Execute worker function."""
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as e:
            logger.debug("BackgroundWorker error: %s", e)
            self.signals.error.emit(e)
        else:
            self.signals.result.emit(result)
        finally:
            self.signals.finished.emit()
