"""Controller for the preview CLI command."""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from nabla.config import Settings
from nabla.engine import FilterCommand, ItemProcessingError, execute, run_file, run_stream
from nabla.engine.processor import STDIN_LABEL
from nabla.sources import iter_paths, split_command_args

logger = logging.getLogger(__name__)

STDIN_PATH = Path("-")


@dataclass(slots=True)
class PreviewCommand:
    """CLI input for one preview run."""

    command: FilterCommand
    files_from: Path | None = None
    null: bool = False
    unordered: bool = False


class PreviewController:
    """Pick an input strategy and feed it to the engine."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def run(self, command: PreviewCommand, *, stdin: BinaryIO, sink: BinaryIO) -> None:
        if command.files_from == STDIN_PATH:
            logger.debug("reading file list from stdin")
            paths = iter_paths(stdin, null=command.null)
            self._run_files(command, command.command, paths, sink)
            return

        if command.files_from is not None:
            logger.debug("reading file list from %s", command.files_from)
            try:
                handle = command.files_from.open("rb")
            except OSError as error:
                raise ItemProcessingError(str(command.files_from), error) from error
            with handle:
                paths = iter_paths(handle, null=command.null)
                self._run_files(command, command.command, paths, sink)
            return

        cmd_args, listed = split_command_args(command.command.args)
        if listed is not None:
            self._run_files(command, command.command.with_args(cmd_args), listed, sink)
            return

        self._run_stream(command.command, stdin, sink)

    def _run_files(
        self,
        command: PreviewCommand,
        filter_command: FilterCommand,
        paths: Iterable[str],
        sink: BinaryIO,
    ) -> None:
        execute(
            functools.partial(run_file, filter_command),
            sink,
            paths,
            jobs=self.settings.jobs,
            unordered=command.unordered,
            force_parallel=self.settings.force_parallel,
            settings=self.settings.engine,
        )

    def _run_stream(self, filter_command: FilterCommand, stdin: BinaryIO, sink: BinaryIO) -> None:
        try:
            data = stdin.read()
        except OSError as error:
            raise ItemProcessingError(STDIN_LABEL, error) from error
        outcome = run_stream(filter_command, data)
        try:
            sink.write(outcome.payload)
        except OSError as error:
            raise ItemProcessingError(STDIN_LABEL, error) from error
