"""Fixed-size pool of worker threads fed through a bounded request queue."""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable
from types import TracebackType

from nabla.engine.models import (
    DiffResult,
    FailureResult,
    InputItem,
    Result,
    SkippedResult,
    WorkerPoolError,
    WorkRequest,
)
from nabla.engine.processor import FilterOutcome

logger = logging.getLogger(__name__)

ItemProcessor = Callable[[str], FilterOutcome]

_STOP = None


def resolve_worker_count(jobs: int) -> int:
    """Use ``jobs`` when positive, otherwise the host's available parallelism."""

    if jobs > 0:
        return jobs
    if hasattr(os, "sched_getaffinity"):
        try:
            return max(1, len(os.sched_getaffinity(0)))
        except OSError:
            logger.debug("sched_getaffinity failed, falling back to cpu_count", exc_info=True)
    return os.cpu_count() or 1


def process_item(processor: ItemProcessor, item: InputItem, worker_id: int) -> Result:
    """Run the processor for one item, packaging any error as a result."""

    try:
        outcome = processor(item.path)
    except Exception as error:  # noqa: BLE001
        return FailureResult(item.index, item.path, worker_id, error)
    if outcome.skipped:
        return SkippedResult(item.index, item.path, worker_id, outcome.returncode)
    return DiffResult(item.index, item.path, worker_id, outcome.payload)


class WorkerPool:
    """Symmetric worker threads pulling requests from one shared bounded queue.

    Each worker delivers its result to the queue named by the request, so the
    same pool serves both the shared result queue of unordered dispatch and
    the per-item reply slots of ordered dispatch. Use as a context manager:
    leaving the block normally waits for the workers to finish, leaving it
    with an exception discards pending requests and does not wait.
    """

    def __init__(
        self,
        *,
        processor: ItemProcessor,
        size: int,
        request_capacity: int,
        poll_interval_seconds: float,
    ) -> None:
        if size <= 0:
            raise ValueError("Worker pool size must be positive.")
        self._processor = processor
        self._size = size
        self._poll_interval = poll_interval_seconds
        # room for one stop marker per worker once the queue is drained
        self._requests: queue.Queue[WorkRequest | None] = queue.Queue(
            maxsize=max(request_capacity, size),
        )
        self._cancelled = threading.Event()
        self._threads: list[threading.Thread] = []

    def __enter__(self) -> WorkerPool:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close(cancel=exc_type is not None)

    def start(self) -> None:
        for worker_id in range(self._size):
            thread = threading.Thread(
                target=self._worker_loop,
                args=(worker_id,),
                daemon=True,
                name=f"nabla-worker-{worker_id}",
            )
            thread.start()
            self._threads.append(thread)
        logger.debug("started %d workers", self._size)

    def try_submit(self, request: WorkRequest) -> bool:
        """Queue ``request`` if there is room right now."""

        self._ensure_alive()
        try:
            self._requests.put_nowait(request)
        except queue.Full:
            return False
        return True

    def submit(self, request: WorkRequest) -> None:
        """Queue ``request``, blocking while the request queue is full."""

        self._ensure_alive()
        while True:
            try:
                self._requests.put(request, timeout=self._poll_interval)
            except queue.Full:
                self._ensure_alive()
                continue
            return

    def receive(self, source: queue.Queue[Result]) -> Result:
        """Block until a result is available on ``source``."""

        while True:
            try:
                return source.get(timeout=self._poll_interval)
            except queue.Empty:
                self._ensure_alive()

    def close(self, *, cancel: bool = False) -> None:
        if not self._threads:
            return
        if cancel:
            self._cancelled.set()
            self._discard_pending()
        for _ in self._threads:
            self._requests.put(_STOP)
        if not cancel:
            for thread in self._threads:
                thread.join()
        logger.debug("closed worker pool (cancel=%s)", cancel)
        self._threads = []

    def _ensure_alive(self) -> None:
        if not any(thread.is_alive() for thread in self._threads):
            raise WorkerPoolError("All workers have exited; the request queue is disconnected.")

    def _discard_pending(self) -> None:
        while True:
            try:
                self._requests.get_nowait()
            except queue.Empty:
                return

    def _worker_loop(self, worker_id: int) -> None:
        while True:
            request = self._requests.get()
            if request is _STOP:
                return
            if self._cancelled.is_set():
                continue
            result = process_item(self._processor, request.item, worker_id)
            self._deliver(request.reply_to, result)

    def _deliver(self, reply_to: queue.Queue[Result], result: Result) -> None:
        while not self._cancelled.is_set():
            try:
                reply_to.put(result, timeout=self._poll_interval)
            except queue.Full:
                continue
            return
