"""Logging configuration for rv.

Provides configurable logging with:
- File-based logging with rotation
- Console output on stderr (stdout carries shell code for eval)
- Performance timing decorator for transitions

Environment Variables:
    RV_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: WARNING)
    RV_LOG_FILE: Path to log file (default: <data dir>/rv.log)
    RV_LOG_MAX_SIZE: Max log file size in MB (default: 1)
    RV_LOG_BACKUPS: Number of backup files to keep (default: 3)

Usage:
    from rv.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("directory_change")
    def change_directory(self, ...):
        ...
"""
import functools
import logging
import os
import sys
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable

from ..config.settings import get_data_dir

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("rv.perf")
main_logger = logging.getLogger("rv")


def get_log_level(default: str = "WARNING") -> int:
    """Get console log level from environment."""
    level_str = os.environ.get("RV_LOG_LEVEL", default).upper()
    return getattr(logging, level_str, logging.WARNING)


def get_log_file() -> Path:
    """Get log file path from environment."""
    path_str = os.environ.get("RV_LOG_FILE")
    if path_str:
        return Path(path_str)
    return get_data_dir() / "rv.log"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler on stderr (WARNING+ by default, DEBUG when verbose)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for timing metrics (file only)

    Safe to call more than once; previous handlers are replaced.
    """
    log_level = logging.DEBUG if verbose else get_log_level()
    log_file = get_log_file()
    max_size_mb = int(os.environ.get("RV_LOG_MAX_SIZE", "1"))
    backup_count = int(os.environ.get("RV_LOG_BACKUPS", "3"))

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-22s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_format = logging.Formatter("rv: %(levelname)s: %(message)s")
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    for logger in (main_logger, perf_logger):
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_format)

    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.addHandler(console_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        perf_handler = RotatingFileHandler(
            log_file.parent / "rv-perf.log",
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
    except OSError as e:
        # A read-only data dir must not break the prompt hook
        main_logger.warning(f"File logging disabled: {e}")
        return

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)
    main_logger.addHandler(file_handler)

    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)
    perf_logger.addHandler(perf_handler)

    main_logger.debug(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def timed(operation: str):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "directory_change")

    Usage:
        @timed("directory_change")
        def change_directory(self, previous, current, ...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.info(f"{operation:20s} | {elapsed:8.2f}ms | OK")
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(f"{operation:20s} | {elapsed:8.2f}ms | FAIL: {e}")
                raise

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, **extra):
    """Context manager for timing code sections.

    Usage:
        with timed_section("store_save", path=store.path):
            store.save()
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:20s} | {elapsed:8.2f}ms | OK"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.info(msg)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:20s} | {elapsed:8.2f}ms | FAIL: {e}"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise
