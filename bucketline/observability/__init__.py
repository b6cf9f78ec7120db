"""
Observability module: structured logging.
"""

from bucketline.observability.logging import StructuredLogger, LogLevel, setup_logging

__all__ = [
    "StructuredLogger",
    "LogLevel",
    "setup_logging",
]
