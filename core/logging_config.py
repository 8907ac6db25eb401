"""
Logging Configuration - Centralized logging setup

Cung cấp logging nhất quán cho toàn bộ app.
Log file được lưu tại ~/.token-lens/logs/

- Log rotation (max 5 files, 2MB each)
- Buffered writes qua MemoryHandler, flush ngay khi co ERROR
"""

import logging
import logging.handlers
import sys
from typing import Optional

from config.paths import APP_NAME, LOG_DIR, DEBUG_MODE

# Logger singleton
_logger: Optional[logging.Logger] = None

# Log rotation config
MAX_LOG_SIZE = 2 * 1024 * 1024  # 2MB per file
MAX_LOG_FILES = 5
BUFFER_CAPACITY = 100


def _level() -> int:
    return logging.DEBUG if DEBUG_MODE else logging.INFO


def get_logger() -> logging.Logger:
    """
    Get hoặc tạo logger singleton.

    Returns:
        Configured logger instance
    """
    global _logger

    if _logger is not None:
        return _logger

    _logger = logging.getLogger(APP_NAME)
    _logger.setLevel(_level())

    # Avoid duplicate handlers
    if _logger.handlers:
        return _logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_level())
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    _logger.addHandler(console_handler)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / "app.log",
            maxBytes=MAX_LOG_SIZE,
            backupCount=MAX_LOG_FILES,
            encoding="utf-8",
        )
        file_handler.setLevel(_level())
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

        memory_handler = logging.handlers.MemoryHandler(
            capacity=BUFFER_CAPACITY,
            flushLevel=logging.ERROR,
            target=file_handler,
        )
        memory_handler.setLevel(_level())
        _logger.addHandler(memory_handler)

    except OSError as e:
        # Khong tao duoc file log -> chi log ra console
        _logger.warning(f"Could not create log file: {e}")

    return _logger


def flush_logs() -> None:
    """
    Flush buffered logs xuong disk.
    Goi truoc khi app exit.
    """
    if _logger:
        for handler in _logger.handlers:
            try:
                handler.flush()
            except Exception:
                pass  # Ignore errors during shutdown


def log_error(message: str, exc: Optional[BaseException] = None) -> None:
    """Log error với optional exception details"""
    logger = get_logger()
    if exc:
        logger.error(f"{message}: {exc}", exc_info=DEBUG_MODE)
    else:
        logger.error(message)


def log_warning(message: str) -> None:
    """Log warning"""
    get_logger().warning(message)


def log_info(message: str) -> None:
    """Log info"""
    get_logger().info(message)


def log_debug(message: str) -> None:
    """Log debug - chi ghi khi DEBUG_MODE bat"""
    if DEBUG_MODE:
        get_logger().debug(message)
