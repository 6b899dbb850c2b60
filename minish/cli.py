"""The interactive command loop."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Sequence
from contextlib import suppress
from typing import TextIO

try:
    import readline  # noqa: F401  (line editing and history for input())
except ImportError:
    readline = None

from .builtins import ShellExit
from .executor import execute
from .heredoc import handle_heredocs
from .parser import QUOTE_ERROR, parse_line
from .state import HERETXT, PROMPT, Shell
from .syntax import ShellSyntaxError


def _read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def run_line(
    shell: Shell,
    line: str,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Parse and run one command line; return the exit status.

    ShellExit from the exit builtin propagates to the caller.
    """
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    if not line:
        return shell.exit_status
    try:
        try:
            commands = parse_line(shell, line)
        except ShellSyntaxError as exc:
            target = stdout if exc.message == QUOTE_ERROR else stderr
            target.write(f"{exc.message}\n")
            shell.exit_status = exc.status
            return shell.exit_status
        handle_heredocs(commands, HERETXT, _read_line, stderr)
        return execute(shell, commands, stdout, stderr)
    finally:
        shell.reset()
        with suppress(FileNotFoundError):
            os.remove(HERETXT)


def main(argv: Sequence[str] | None = None) -> int:
    """Read command lines until end of input; return the shell's exit code."""
    del argv
    shell = Shell.from_environ(os.environ)
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            break
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            sys.stdout.flush()
            continue
        try:
            run_line(shell, line, sys.stdout, sys.stderr)
        except ShellExit as done:
            return done.status
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            sys.stdout.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())