"""Work items, results and errors exchanged between dispatchers and workers."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import BinaryIO

logger = logging.getLogger(__name__)


class NablaError(RuntimeError):
    """Base class for errors that abort a preview run."""


class ItemProcessingError(NablaError):
    """Hard failure while processing one input, annotated with its label."""

    def __init__(self, label: str, cause: BaseException | str) -> None:
        super().__init__(f"{label}: {cause}")
        self.label = label


class WorkerPoolError(NablaError):
    """The worker pool can no longer accept or answer requests."""


@dataclass(frozen=True, slots=True)
class InputItem:
    """One input path tagged with its position in the input stream."""

    index: int
    path: str


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Diff produced for an input; an empty payload means no change."""

    index: int
    path: str
    worker_id: int
    payload: bytes

    def write_to(self, sink: BinaryIO) -> None:
        logger.debug("write: index=%d path=%s worker=%d", self.index, self.path, self.worker_id)
        try:
            sink.write(self.payload)
        except OSError as error:
            raise ItemProcessingError(self.path, error) from error


@dataclass(frozen=True, slots=True)
class SkippedResult:
    """The filter command exited non-zero; nothing is reported for the input."""

    index: int
    path: str
    worker_id: int
    returncode: int

    def write_to(self, sink: BinaryIO) -> None:  # noqa: ARG002
        logger.debug("skip: index=%d path=%s worker=%d", self.index, self.path, self.worker_id)


@dataclass(frozen=True, slots=True)
class FailureResult:
    """Hard failure captured in a worker, re-raised when the result is written."""

    index: int
    path: str
    worker_id: int
    error: Exception

    def write_to(self, sink: BinaryIO) -> None:  # noqa: ARG002
        logger.debug("error: index=%d path=%s worker=%d", self.index, self.path, self.worker_id)
        if isinstance(self.error, ItemProcessingError):
            raise self.error
        raise ItemProcessingError(self.path, self.error) from self.error


Result = DiffResult | SkippedResult | FailureResult


@dataclass(frozen=True, slots=True)
class WorkRequest:
    """Input item in flight toward a worker, with the queue its result goes to."""

    item: InputItem
    reply_to: queue.Queue[Result]
