"""
Core Utilities Package

Chứa các utility modules:
- qt_utils: DebouncedTimer, BackgroundWorker cho PySide6
"""

from core.utils.qt_utils import BackgroundWorker, DebouncedTimer, WorkerSignals

__all__ = [
    "BackgroundWorker",
    "DebouncedTimer",
    "WorkerSignals",
]
