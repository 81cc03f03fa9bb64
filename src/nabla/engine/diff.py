"""Unified diff rendering for raw byte buffers."""

from __future__ import annotations

import difflib
import io
import os
from collections.abc import Iterator

NO_NEWLINE_MARKER = b"\\ No newline at end of file\n"


def unified_diff(label_a: str, a: bytes, label_b: str, b: bytes) -> bytes:
    """Return a line-oriented unified diff of ``a`` against ``b``.

    Both buffers are compared as raw bytes, so content in any encoding is
    passed through untouched. Identical buffers produce an empty result.
    """

    return b"".join(_iter_diff_lines(label_a, a, label_b, b))


def _iter_diff_lines(label_a: str, a: bytes, label_b: str, b: bytes) -> Iterator[bytes]:
    lines = difflib.diff_bytes(
        difflib.unified_diff,
        io.BytesIO(a).readlines(),
        io.BytesIO(b).readlines(),
        fromfile=os.fsencode(label_a),
        tofile=os.fsencode(label_b),
    )
    for line in lines:
        if line.endswith(b"\n"):
            yield line
            continue
        # last line of a buffer without a trailing newline
        yield line + b"\n"
        yield NO_NEWLINE_MARKER
