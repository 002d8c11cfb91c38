"""Shared utilities and helpers."""
from shared.diagnostics import (
    Stopwatch,
    log_memory_usage,
    log_thread_status,
    setup_logging,
)

__all__ = [
    'Stopwatch',
    'log_memory_usage',
    'log_thread_status',
    'setup_logging',
]
