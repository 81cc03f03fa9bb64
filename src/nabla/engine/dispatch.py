"""Serial, unordered and ordered execution of the item processor over many inputs."""

from __future__ import annotations

import logging
import queue
from collections import deque
from collections.abc import Iterable
from typing import BinaryIO

from nabla.config import EngineSettings
from nabla.engine.models import InputItem, Result, WorkRequest
from nabla.engine.pool import ItemProcessor, WorkerPool, process_item, resolve_worker_count

logger = logging.getLogger(__name__)


def execute(  # noqa: PLR0913
    processor: ItemProcessor,
    sink: BinaryIO,
    paths: Iterable[str],
    *,
    jobs: int = 0,
    unordered: bool = False,
    force_parallel: bool = False,
    settings: EngineSettings | None = None,
) -> None:
    """Process every path and write the diffs to ``sink``.

    One effective worker runs inline unless ``force_parallel`` is set;
    otherwise results are written in input order, or in completion order
    when ``unordered`` is set.
    """

    engine = settings or EngineSettings()
    workers = resolve_worker_count(jobs)
    if workers <= 1 and not force_parallel:
        run_serial(processor, sink, paths)
    elif unordered:
        run_unordered(processor, sink, paths, workers=workers, settings=engine)
    else:
        run_ordered(processor, sink, paths, workers=workers, settings=engine)


def run_serial(processor: ItemProcessor, sink: BinaryIO, paths: Iterable[str]) -> None:
    count = 0
    for index, path in enumerate(paths):
        process_item(processor, InputItem(index, path), 0).write_to(sink)
        count += 1
    logger.debug("processed: %d", count)


def run_unordered(
    processor: ItemProcessor,
    sink: BinaryIO,
    paths: Iterable[str],
    *,
    workers: int,
    settings: EngineSettings,
) -> None:
    """Write results as workers complete them."""

    logger.debug("the number of threads: %d", workers)
    results: queue.Queue[Result] = queue.Queue(maxsize=settings.result_capacity(workers))
    in_flight = 0
    with WorkerPool(
        processor=processor,
        size=workers,
        request_capacity=settings.request_capacity(workers),
        poll_interval_seconds=settings.poll_interval_seconds,
    ) as pool:
        for index, path in enumerate(paths):
            request = WorkRequest(InputItem(index, path), results)
            while not pool.try_submit(request):
                # request queue is full: drain while waiting for room
                try:
                    result = results.get(timeout=settings.poll_interval_seconds)
                except queue.Empty:
                    continue
                result.write_to(sink)
                in_flight -= 1
            in_flight += 1
            logger.debug("sent: %d", index)

        logger.debug("remains: %d", in_flight)
        while in_flight > 0:
            pool.receive(results).write_to(sink)
            in_flight -= 1


def run_ordered(
    processor: ItemProcessor,
    sink: BinaryIO,
    paths: Iterable[str],
    *,
    workers: int,
    settings: EngineSettings,
) -> None:
    """Write results in input order while workers complete them in any order."""

    logger.debug("the number of threads: %d", workers)
    bound = settings.pending_bound(workers)
    pending: deque[queue.Queue[Result]] = deque()
    with WorkerPool(
        processor=processor,
        size=workers,
        request_capacity=settings.request_capacity(workers),
        poll_interval_seconds=settings.poll_interval_seconds,
    ) as pool:
        for index, path in enumerate(paths):
            reply: queue.Queue[Result] = queue.Queue(maxsize=1)
            request = WorkRequest(InputItem(index, path), reply)
            while True:
                if len(pending) >= bound:
                    pool.receive(pending[0]).write_to(sink)
                    pending.popleft()
                elif pending:
                    if pool.try_submit(request):
                        break
                    try:
                        result = pending[0].get(timeout=settings.poll_interval_seconds)
                    except queue.Empty:
                        continue
                    result.write_to(sink)
                    pending.popleft()
                else:
                    pool.submit(request)
                    break
            pending.append(reply)
            logger.debug("sent: %d", index)

        logger.debug("remains: %d", len(pending))
        while pending:
            pool.receive(pending.popleft()).write_to(sink)
