"""CLI entrypoint for nabla."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import BinaryIO

import rich_click as click

from nabla import __version__
from nabla.config import Settings
from nabla.controllers import PreviewCommand, PreviewController
from nabla.engine import FilterCommand, NablaError

click.rich_click.USE_MARKDOWN = True

logger = logging.getLogger(__name__)


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
)
@click.version_option(version=__version__, prog_name="nabla")
@click.option("-0", "--null", is_flag=True, help="Read NUL-delimited input.")
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=0),
    default=None,
    help="Approximate number of parallel jobs. `0` uses all available CPUs.",
)
@click.option(
    "-u",
    "--unordered",
    is_flag=True,
    help="Allow unordered output for faster parallel execution.",
)
@click.option(
    "-f",
    "--files-from",
    type=click.Path(path_type=Path, dir_okay=False, allow_dash=True),
    default=None,
    help="Read file paths from a file, `-` for stdin.",
)
@click.option("--force-parallel", is_flag=True, hidden=True)
@click.argument("cmd_name", metavar="CMD")
@click.argument("cmd_args", metavar="[ARG]...", nargs=-1, type=click.UNPROCESSED)
def nabla(  # noqa: PLR0913
    null: bool,
    jobs: int | None,
    unordered: bool,
    files_from: Path | None,
    force_parallel: bool,
    cmd_name: str,
    cmd_args: tuple[str, ...],
) -> None:
    """Preview the changes a filter command would make, as a unified diff.

    Runs `CMD [ARG]...` on each input and prints a diff between the input
    and the command's output. Files are never modified.

    - `nabla sed s/a/b/ -- FILE...` passes each FILE as the last argument.
    - `nabla -f LIST sed s/a/b/` reads the file list from LIST (`-` for stdin).
    - `nabla sed s/a/b/ < FILE` filters stdin as a whole.
    """

    try:
        settings = Settings.from_env()
        if jobs is not None:
            settings.jobs = jobs
        settings.force_parallel = settings.force_parallel or force_parallel
        settings.validate()
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    _configure_logging(settings.log_level)

    sink = _binary_stdout()
    try:
        PreviewController(settings).run(
            PreviewCommand(
                command=FilterCommand(name=cmd_name, args=cmd_args),
                files_from=files_from,
                null=null,
                unordered=unordered,
            ),
            stdin=sys.stdin.buffer,
            sink=sink,
        )
    except (NablaError, OSError) as error:
        raise click.ClickException(str(error)) from error
    finally:
        try:
            sink.flush()
        except BrokenPipeError:
            logger.debug("stdout closed by reader")
            _discard_stdout()


def _binary_stdout() -> BinaryIO:
    return sys.stdout.buffer


def _discard_stdout() -> None:
    # the interpreter flushes stdout again at exit
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":  # pragma: no cover
    nabla()
