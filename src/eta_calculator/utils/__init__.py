"""Shared utility modules for common operations.

This package provides:
- Duration, ETA and progress formatting (pure functions)
- Logging setup with session ID tracking
"""

from eta_calculator.utils.formatting import (
    format_duration,
    format_eta,
    format_etr,
    format_progress,
)

__all__ = [
    "format_duration",
    "format_eta",
    "format_etr",
    "format_progress",
]
