"""Run one input through the external filter command and diff the result."""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

from nabla.engine.diff import unified_diff
from nabla.engine.models import ItemProcessingError

logger = logging.getLogger(__name__)

STDIN_LABEL = "<stdin>"
STDOUT_LABEL = "<stdout>"


@dataclass(frozen=True, slots=True)
class FilterCommand:
    """External command treated as an opaque byte filter."""

    name: str
    args: tuple[str, ...] = ()

    def argv(self, *extra: str) -> list[str]:
        return [self.name, *self.args, *extra]

    def with_args(self, args: tuple[str, ...]) -> FilterCommand:
        return FilterCommand(name=self.name, args=args)


@dataclass(frozen=True, slots=True)
class FilterOutcome:
    """Exit status of one command run and the diff it produced."""

    returncode: int
    payload: bytes

    @property
    def skipped(self) -> bool:
        return self.returncode != 0


def run_file(command: FilterCommand, path: str) -> FilterOutcome:
    """Run ``command`` with ``path`` appended as its last argument.

    ``path`` is passed and used as the diff label exactly as given. The
    command's stdin is closed; its stdout replaces the file's content on the
    "after" side of the diff. A non-zero exit is reported as a warning and
    yields an empty payload.

    Raises:
        OSError: the file cannot be read or the command cannot be run.
    """

    original = Path(path).read_bytes()
    completed = subprocess.run(  # noqa: S603
        command.argv(path),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        check=False,
    )
    if completed.returncode != 0:
        logger.warning("%s: command exited with %s", path, describe_exit(completed.returncode))
        return FilterOutcome(returncode=completed.returncode, payload=b"")

    return FilterOutcome(
        returncode=0,
        payload=unified_diff(path, original, path, completed.stdout),
    )


def run_stream(command: FilterCommand, data: bytes) -> FilterOutcome:
    """Pipe ``data`` through ``command`` and diff its stdout against the input.

    A command that exits before consuming all of ``data`` is a hard failure.
    """

    try:
        process = subprocess.Popen(  # noqa: S603
            command.argv(),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
        )
    except OSError as error:
        raise ItemProcessingError(STDIN_LABEL, error) from error

    with process:
        stdout_chunks: list[bytes] = []
        reader = threading.Thread(
            target=lambda: stdout_chunks.append(process.stdout.read()),
            daemon=True,
            name="nabla-stdout-reader",
        )
        reader.start()
        try:
            try:
                process.stdin.write(data)
            finally:
                process.stdin.close()
        except OSError as error:
            process.wait()
            reader.join()
            raise ItemProcessingError(STDIN_LABEL, error) from error
        returncode = process.wait()
        reader.join()

    if returncode != 0:
        logger.warning("command exited with %s", describe_exit(returncode))
        return FilterOutcome(returncode=returncode, payload=b"")

    return FilterOutcome(
        returncode=0,
        payload=unified_diff(STDIN_LABEL, data, STDOUT_LABEL, b"".join(stdout_chunks)),
    )


def describe_exit(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status: {returncode}"
