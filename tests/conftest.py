"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from nabla.engine import FilterCommand

_FAKE_FILTER = '''
import sys
import time
import zlib
from pathlib import Path

mode = sys.argv[1]
path = sys.argv[2] if len(sys.argv) > 2 else None
data = Path(path).read_bytes() if path is not None else sys.stdin.buffer.read()
if mode == "fail":
    raise SystemExit(1)
if mode == "fail-on-b" and path is not None and Path(path).name.startswith("b"):
    raise SystemExit(3)
if mode == "jitter":
    time.sleep((zlib.crc32(data) % 5) / 100)
sys.stdout.buffer.write(data.replace(b"e", b"E"))
'''


@pytest.fixture()
def fake_filter(tmp_path: Path) -> Path:
    """Python script standing in for ``sed s/e/E/g`` with a selectable failure mode."""

    script = tmp_path / "fake_filter.py"
    script.write_text(_FAKE_FILTER.strip() + "\n", "utf-8")
    return script


@pytest.fixture()
def make_command(fake_filter: Path):
    def _make(mode: str = "upper-e") -> FilterCommand:
        return FilterCommand(name=sys.executable, args=(str(fake_filter), mode))

    return _make


@pytest.fixture()
def sample_files(tmp_path: Path) -> list[str]:
    files = tmp_path / "files"
    files.mkdir()
    contents = {
        "a.txt": "hello\n",
        "b.txt": "one\ntwo\nthree\n",
        "c.txt": "no match here? yes\n",
        "d.txt": "ok\n",
    }
    paths = []
    for name, text in contents.items():
        path = files / name
        path.write_text(text, "utf-8")
        paths.append(str(path))
    return paths
