"""Reading here-documents into a temporary file."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TextIO

from .state import Command

HEREDOC_PROMPT = "> "
EOF_MESSAGE = "heredoc delimited by eof\n"

ReadLine = Callable[[str], "str | None"]


@contextmanager
def _interrupts_ignored() -> Iterator[None]:
    """Ignore SIGINT and SIGQUIT while reading, then restore the old handlers."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    saved = {}
    for name in ("SIGINT", "SIGQUIT"):
        signum = getattr(signal, name, None)
        if signum is not None:
            saved[signum] = signal.signal(signum, signal.SIG_IGN)
    try:
        yield
    finally:
        for signum, handler in saved.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def collect_heredoc(
    delimiter: str, path: str, read_line: ReadLine, err: TextIO
) -> list[str]:
    """Read lines until one starts with ``delimiter`` and append them to ``path``.

    ``read_line`` is called with the prompt and returns None at end of input.
    Lines are written as read, without newlines. Returns the lines written.
    """
    written: list[str] = []
    with _interrupts_ignored(), open(path, "a", encoding="utf-8") as target:
        while True:
            line = read_line(HEREDOC_PROMPT)
            if line is None:
                err.write(EOF_MESSAGE)
                break
            if line.startswith(delimiter):
                break
            target.write(line)
            written.append(line)
    return written


def handle_heredocs(
    commands: Sequence[Command], path: str, read_line: ReadLine, err: TextIO
) -> list[str]:
    """Collect the here-documents of a pipeline into ``path``.

    The delimiter position carries over from one command to the next, so a
    later command starts reading its delimiters past the count of the earlier.
    Returns every line written.
    """
    written: list[str] = []
    offset = 0
    for command in commands:
        index = offset
        while index < len(command.delimiters):
            written.extend(
                collect_heredoc(command.delimiters[index], path, read_line, err)
            )
            index += 1
        offset = index + 1
    return written