"""CLI entry point for pi-prompt. Uses Click for argument parsing."""

from __future__ import annotations

import contextlib
import logging
import logging.handlers
import sys
from typing import Iterator

import click

from pi.prompt.config import load_config
from pi.prompt.editor import MultiLineEditor
from pi.prompt.terminal import RawTerminal

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
HELD_RECORDS_MAX = 10_000


class _HeldRecords(logging.handlers.MemoryHandler):
    """Buffers records for *target* without flushing; keeps the newest ones."""

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        del self.buffer[: -self.capacity]
        return False


def _configure_logging(level: str, log_file: str | None) -> logging.Handler:
    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    root.addHandler(handler)
    return handler


@contextlib.contextmanager
def _hold_stderr_records(handler: logging.Handler) -> Iterator[None]:
    """Keep records off stderr while the frame is drawn there, then emit them."""
    if isinstance(handler, logging.FileHandler):
        yield
        return

    root = logging.getLogger()
    held = _HeldRecords(HELD_RECORDS_MAX, flushLevel=logging.CRITICAL + 1, target=handler)
    root.removeHandler(handler)
    root.addHandler(held)
    try:
        yield
    finally:
        root.removeHandler(held)
        root.addHandler(handler)
        held.close()


@click.command()
@click.argument("message", default="Enter your prompt:")
@click.option("--placeholder", default=None, help="Hint shown under the message")
@click.option("--root", "root", default=None, type=click.Path(file_okay=False), help="Directory searched by @ completion")
@click.option("--no-expand", is_flag=True, help="Keep @file references instead of inlining the files")
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
@click.option("--log-file", default=None, help="Write log records to this file")
def main(message, placeholder, root, no_expand, log_level, log_file):
    """Read multi-line input from the terminal and print it to stdout.

    Exits with status 1 when the prompt is cancelled or nothing was entered.
    """
    handler = _configure_logging(log_level, log_file)

    config = load_config()
    if no_expand:
        config.expand_file_references = False

    # The frame goes to stderr so stdout carries only the result.
    editor = MultiLineEditor(
        terminal=RawTerminal(output=sys.stderr),
        file_searcher=config.file_searcher(root),
        options=config.editor_options(),
    )
    with _hold_stderr_records(handler):
        result = editor.edit(message, placeholder=placeholder)
    if not result:
        sys.exit(1)
    click.echo(result)


if __name__ == "__main__":
    main()
