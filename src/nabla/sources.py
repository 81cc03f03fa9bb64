"""Ways of obtaining the list of input paths."""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import BinaryIO

ARGS_SEPARATOR = "--"
_READ_CHUNK_SIZE = 64 * 1024


def split_command_args(args: tuple[str, ...]) -> tuple[tuple[str, ...], tuple[str, ...] | None]:
    """Split ``CMD ARGS... -- FILES...`` at the last ``--``.

    Returns the command arguments and the listed paths, or ``None`` for the
    paths when no separator is present.
    """

    if ARGS_SEPARATOR not in args:
        return args, None
    last = len(args) - 1 - args[::-1].index(ARGS_SEPARATOR)
    return args[:last], args[last + 1 :]


def iter_paths(stream: BinaryIO, *, null: bool = False) -> Iterator[str]:
    """Lazily yield paths from a newline- or NUL-delimited list.

    Paths are returned exactly as listed; ``./-n`` must not turn into ``-n``.
    """

    records = _iter_nul_records(stream) if null else _iter_lines(stream)
    for record in records:
        if record:
            yield os.fsdecode(record)


def _iter_lines(stream: BinaryIO) -> Iterator[bytes]:
    for line in stream:
        if line.endswith(b"\r\n"):
            yield line[:-2]
        elif line.endswith(b"\n"):
            yield line[:-1]
        else:
            yield line


def _iter_nul_records(stream: BinaryIO) -> Iterator[bytes]:
    buffer = b""
    while chunk := stream.read(_READ_CHUNK_SIZE):
        buffer += chunk
        *records, buffer = buffer.split(b"\0")
        yield from records
    if buffer:
        yield buffer
