from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from nabla import __version__
from nabla.main import nabla

pytestmark = [
    allure.epic("Preview Engine"),
    allure.feature("CLI"),
]


def _expected_multi_patch(paths: list[str]) -> bytes:
    a_path, b_path = paths[0], paths[1]
    return (
        f"--- {a_path}\n+++ {a_path}\n@@ -1 +1 @@\n-hello\n+hEllo\n"
        f"--- {b_path}\n+++ {b_path}\n@@ -1,3 +1,3 @@\n-one\n+onE\n two\n-three\n+thrEE\n"
    ).encode()


def _filter_args(fake_filter: Path, mode: str = "upper-e") -> list[str]:
    return [sys.executable, str(fake_filter), mode]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in ("NABLA_JOBS", "NABLA_FORCE_PARALLEL", "NABLA_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_version_option() -> None:
    result = CliRunner().invoke(nabla, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_filter_mode_diffs_stdin_against_stdout(fake_filter: Path) -> None:
    result = CliRunner().invoke(nabla, _filter_args(fake_filter), input=b"hello\n")

    assert result.exit_code == 0
    assert result.stdout_bytes == b"--- <stdin>\n+++ <stdout>\n@@ -1 +1 @@\n-hello\n+hEllo\n"


def test_files_after_separator(fake_filter: Path, sample_files: list[str]) -> None:
    args = [*_filter_args(fake_filter), "--", str(sample_files[0]), str(sample_files[1])]

    result = CliRunner().invoke(nabla, args)

    assert result.exit_code == 0
    assert result.stdout_bytes == _expected_multi_patch(sample_files)


@pytest.mark.parametrize(
    "options",
    [[], ["-j", "1"], ["-j", "4"], ["-j", "1", "--force-parallel"]],
)
def test_files_from_stdin(fake_filter: Path, sample_files: list[str], options) -> None:
    listing = f"{sample_files[0]}\n{sample_files[1]}\n".encode()

    result = CliRunner().invoke(
        nabla,
        [*options, "-f", "-", *_filter_args(fake_filter)],
        input=listing,
    )

    assert result.exit_code == 0
    assert result.stdout_bytes == _expected_multi_patch(sample_files)


def test_files_from_stdin_nul_delimited(fake_filter: Path, sample_files: list[str]) -> None:
    listing = f"{sample_files[0]}\0{sample_files[1]}".encode()

    result = CliRunner().invoke(nabla, ["-0", "-f", "-", *_filter_args(fake_filter)], input=listing)

    assert result.exit_code == 0
    assert result.stdout_bytes == _expected_multi_patch(sample_files)


def test_files_from_file(fake_filter: Path, sample_files: list[str], tmp_path: Path) -> None:
    listing = tmp_path / "files.txt"
    listing.write_text(f"{sample_files[0]}\n{sample_files[1]}\n", "utf-8")

    result = CliRunner().invoke(nabla, ["--files-from", str(listing), *_filter_args(fake_filter)])

    assert result.exit_code == 0
    assert result.stdout_bytes == _expected_multi_patch(sample_files)


def test_unordered_output_has_same_lines(fake_filter: Path, sample_files: list[str]) -> None:
    listing = "".join(f"{path}\n" for path in sample_files[:2]).encode()

    result = CliRunner().invoke(
        nabla,
        ["-u", "-j", "2", "-f", "-", *_filter_args(fake_filter)],
        input=listing,
    )

    assert result.exit_code == 0
    expected = _expected_multi_patch(sample_files)
    assert sorted(result.stdout_bytes.splitlines()) == sorted(expected.splitlines())


def test_command_options_are_not_parsed_by_nabla(tmp_path: Path) -> None:
    script = tmp_path / "echo_args.py"
    script.write_text("import sys\nprint(' '.join(sys.argv[1:]))\n", "utf-8")

    result = CliRunner().invoke(nabla, [sys.executable, str(script), "-u", "--jobs", "x"], input=b"")

    assert result.exit_code == 0
    assert b"+-u --jobs x\n" in result.stdout_bytes


def test_failing_command_prints_no_diff(
    fake_filter: Path,
    sample_files: list[str],
    caplog,
) -> None:
    args = [*_filter_args(fake_filter, "fail"), "--", *(str(path) for path in sample_files)]

    with caplog.at_level(logging.WARNING, logger="nabla"):
        result = CliRunner().invoke(nabla, ["-j", "2", *args])

    assert result.exit_code == 0
    assert result.stdout_bytes == b""
    assert caplog.text.count("command exited with exit status: 1") == len(sample_files)


def test_missing_input_exits_with_labeled_error(fake_filter: Path, tmp_path: Path) -> None:
    missing = tmp_path / "missing.txt"

    result = CliRunner().invoke(nabla, [*_filter_args(fake_filter), "--", str(missing)])

    assert result.exit_code == 1
    assert f"{missing}:" in result.output


def test_missing_command_exits_with_error(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("hello\n", "utf-8")

    result = CliRunner().invoke(nabla, ["nabla-test-no-such-command", "--", str(path)])

    assert result.exit_code == 1
    assert str(path) in result.output


def test_invalid_env_config_is_reported(monkeypatch, fake_filter: Path) -> None:
    monkeypatch.setenv("NABLA_JOBS", "-3")

    result = CliRunner().invoke(nabla, _filter_args(fake_filter), input=b"x\n")

    assert result.exit_code == 1
    assert "NABLA_JOBS must be >= 0" in result.output


def test_jobs_option_overrides_env(monkeypatch, fake_filter: Path, sample_files) -> None:
    monkeypatch.setenv("NABLA_JOBS", "-3")

    result = CliRunner().invoke(
        nabla,
        ["-j", "2", *_filter_args(fake_filter), "--", str(sample_files[0])],
    )

    assert result.exit_code == 0
    assert result.stdout_bytes.startswith(f"--- {sample_files[0]}\n".encode())


@pytest.mark.parametrize("options", [[], ["-j", "4"]])
def test_relative_paths_are_labeled_as_listed(
    fake_filter: Path, sample_files: list[str], monkeypatch, options
) -> None:
    monkeypatch.chdir(Path(sample_files[0]).parent)

    result = CliRunner().invoke(
        nabla,
        [*options, "-f", "-", *_filter_args(fake_filter)],
        input=b"./a.txt\n./b.txt\n",
    )

    assert result.exit_code == 0
    assert result.stdout_bytes == _expected_multi_patch(["./a.txt", "./b.txt"])


def test_closed_stdout_on_flush_is_not_an_error(
    monkeypatch, fake_filter: Path, sample_files: list[str]
) -> None:
    class _ClosedPipe(io.BytesIO):
        def flush(self) -> None:
            raise BrokenPipeError(32, "Broken pipe")

    monkeypatch.setattr("nabla.main._binary_stdout", _ClosedPipe)

    result = CliRunner().invoke(nabla, [*_filter_args(fake_filter), "--", sample_files[0]])

    assert result.exit_code == 0
    assert result.exception is None


def test_run_emits_no_deprecation_warnings(fake_filter: Path, recwarn) -> None:
    result = CliRunner().invoke(nabla, _filter_args(fake_filter), input=b"hello\n")

    assert result.exit_code == 0
    assert not [w for w in recwarn if "get_binary_stream" in str(w.message)]
