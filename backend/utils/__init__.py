"""
Utilities for the Career Compass backend.
"""

from .tracing import (
    initialize_tracing,
    shutdown_tracing,
    trace_async,
    trace_db_operation,
)

__all__ = [
    "initialize_tracing",
    "shutdown_tracing",
    "trace_async",
    "trace_db_operation",
]
