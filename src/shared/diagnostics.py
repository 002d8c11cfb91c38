"""
Diagnostic utilities.

Logging setup, memory/thread snapshots and a small stopwatch used to time
tile decoding.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any

import psutil

from shared.constants import LOG_FORMAT

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
) -> Path | None:
    """Configure root logging with a stdout handler and optional file sink.

    Args:
        level: Root logging level.
        log_file: Path of a UTF-8 log file. Parent directories are created.

    Returns:
        Resolved log file path, or None when logging to stdout only.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_path: Path | None = None
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_path), encoding='utf-8'))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

    # Pillow logs every plugin it probes at DEBUG
    logging.getLogger('PIL').setLevel(logging.WARNING)
    return log_path


def get_memory_info() -> dict[str, Any]:
    """Get process and system memory usage."""
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        system_memory = psutil.virtual_memory()

        return {
            'process_rss_mb': round(memory_info.rss / _MB, 2),
            'system_total_mb': round(system_memory.total / _MB, 2),
            'system_available_mb': round(system_memory.available / _MB, 2),
            'system_used_percent': system_memory.percent,
        }
    except Exception as e:
        return {'error': f'Failed to get memory info: {e}'}


def get_available_memory_mb() -> float | None:
    """Available system memory in MB, or None if it cannot be read."""
    value = get_memory_info().get('system_available_mb')
    return float(value) if value is not None else None


def get_thread_info() -> dict[str, Any]:
    """Get information about active threads."""
    try:
        info: dict[str, Any] = {
            'active_count': threading.active_count(),
            'thread_names': [t.name for t in threading.enumerate()],
        }
        try:
            info['system_threads'] = psutil.Process().num_threads()
        except Exception as e:
            logger.debug('Failed to get system thread count: %s', e)
    except Exception as e:
        return {'error': f'Failed to get thread info: {e}'}
    else:
        return info


def log_memory_usage(context: str = '') -> None:
    """Quick memory usage logging."""
    memory_info = get_memory_info()
    context_label = f' ({context})' if context else ''
    logger.info(
        'Memory usage%s: RSS=%sMB, Available=%sMB',
        context_label,
        memory_info.get('process_rss_mb', 'N/A'),
        memory_info.get('system_available_mb', 'N/A'),
    )


def log_thread_status(context: str = '') -> None:
    """Quick thread status logging."""
    thread_info = get_thread_info()
    context_label = f' ({context})' if context else ''
    logger.info(
        'Thread status%s: Active=%s, System=%s',
        context_label,
        thread_info.get('active_count', 'N/A'),
        thread_info.get('system_threads', 'N/A'),
    )


class Stopwatch:
    """Times a block and logs the elapsed time when it exits.

    Usage:
        with Stopwatch(logger, logging.DEBUG, 'Loading image: %s', path):
            ...
    """

    def __init__(
        self,
        log: logging.Logger,
        level: int,
        message: str,
        *args: object,
    ) -> None:
        self._log = log
        self._level = level
        self._message = message
        self._args = args
        self._started = 0.0
        self.elapsed_s = 0.0

    def __enter__(self) -> Stopwatch:
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_s = time.perf_counter() - self._started
        if self._log.isEnabledFor(self._level):
            self._log.log(
                self._level,
                self._message + ' took %.1f ms',
                *self._args,
                self.elapsed_s * 1000.0,
            )
