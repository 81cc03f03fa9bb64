"""Parallel execution engine for filter previews."""

from nabla.engine.dispatch import execute, run_ordered, run_serial, run_unordered
from nabla.engine.models import (
    DiffResult,
    FailureResult,
    InputItem,
    ItemProcessingError,
    NablaError,
    SkippedResult,
    WorkerPoolError,
    WorkRequest,
)
from nabla.engine.pool import WorkerPool, resolve_worker_count
from nabla.engine.processor import FilterCommand, FilterOutcome, run_file, run_stream

__all__ = [
    "DiffResult",
    "FailureResult",
    "FilterCommand",
    "FilterOutcome",
    "InputItem",
    "ItemProcessingError",
    "NablaError",
    "SkippedResult",
    "WorkRequest",
    "WorkerPool",
    "WorkerPoolError",
    "execute",
    "resolve_worker_count",
    "run_file",
    "run_ordered",
    "run_serial",
    "run_stream",
    "run_unordered",
]
