"""Running parsed pipelines: builtins inside the shell, programs as processes."""

from __future__ import annotations

import copy
import io
import os
import signal
import subprocess
import tempfile
import threading
from collections.abc import Iterator, Sequence
from contextlib import ExitStack, contextmanager, suppress
from typing import IO, Any, TextIO, Union

from .builtins import (
    ShellExit,
    cd,
    clear,
    echo,
    env,
    exit_builtin,
    export,
    is_builtin,
    is_echo_flag,
    pwd,
    runs_in_parent,
    strip_quotes,
    unset,
)
from .state import ERR_PERMISSION, IS_DIRECTORY, NOT_FOUND, Command, Shell
from .textutils import split_fields

NO_NEWLINE_MARK = "\033[38;5;0;48;5;255m%\033[0m\n"

_Feed = Union[None, bytes, IO[bytes]]


class RedirectionError(Exception):
    """A redirection target that could not be opened."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"open: {reason}")
        self.filename = filename
        self.reason = reason


def _reset_child_signals() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)


_PREEXEC = _reset_child_signals if os.name == "posix" else None


@contextmanager
def _sigint_ignored() -> Iterator[None]:
    """Ignore SIGINT in the shell while a pipeline runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(
            signal.SIGINT, previous if previous is not None else signal.SIG_DFL
        )


def find_in_path(shell: Shell, name: str | None) -> str | None:
    """First ``dir/name`` that exists, searching the shell's PATH."""
    if name is None:
        return None
    path_env = None
    for entry in shell.env:
        if entry.startswith("PATH="):
            path_env = entry[len("PATH="):]
    if path_env is None:
        return None
    for directory in split_fields(path_env, ":"):
        candidate = f"{directory}/{name}"
        if os.path.exists(candidate):
            return candidate
    return None


def resolve_program(shell: Shell, command: Command) -> str | None:
    """Path of the program a command runs; None for builtins and unknown names."""
    name = command.name
    if name is None:
        return None
    if name.startswith(("/", "./")):
        return name
    if is_builtin(name):
        return None
    return find_in_path(shell, name)


def _listed(names: Sequence[str], target: str) -> bool:
    return any(name.startswith(target) for name in names)


def _open(target: str, mode: str) -> IO[bytes]:
    try:
        return open(target, mode)
    except OSError as exc:
        raise RedirectionError(target, exc.strerror or str(exc)) from exc


@contextmanager
def open_redirections(
    command: Command, stdin: Any, stdout: Any
) -> Iterator[tuple[Any, Any]]:
    """Open the command's redirections in order and yield the final (stdin, stdout).

    Every target is opened, so earlier output files are still created or
    truncated; the last one of each direction wins. Files are closed on exit.
    Raises RedirectionError when a target cannot be opened.
    """
    with ExitStack() as stack:
        for target in command.order:
            if _listed(command.in_red, target):
                stdin = stack.enter_context(_open(target, "rb"))
            elif _listed(command.out_red, target):
                stdout = stack.enter_context(_open(target, "wb"))
            elif _listed(command.append, target):
                stdout = stack.enter_context(_open(target, "ab"))
        yield stdin, stdout


def run_builtin(
    shell: Shell, command: Command, stdout: TextIO, stderr: TextIO
) -> None:
    """Run the builtin the command names; unknown names do nothing."""
    name = command.name or ""
    args = command.args[1:]
    if name.startswith("exit"):
        exit_builtin(shell, args, stdout, stderr)
    elif name.startswith("echo"):
        echo(shell, args, stdout)
        if is_echo_flag(args[0] if args else None) and len(args) > 1:
            stdout.write(NO_NEWLINE_MARK)
    elif name.startswith("cd"):
        cd(shell, args, stderr)
    elif name.startswith("pwd"):
        pwd(shell, stdout, stderr)
    elif name.startswith("env"):
        env(shell, args, stdout, False)
    elif name.startswith("export"):
        export(shell, args, stdout)
    elif name.startswith("unset"):
        unset(shell, args)
    elif name.startswith("clear"):
        clear(shell, stdout)


def _fileno(stream: Any) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _sink_for(stream: Any, stack: ExitStack) -> Any:
    fd = _fileno(stream)
    if fd is not None:
        return fd
    return stack.enter_context(tempfile.TemporaryFile())


def _drain(sink: Any, stream: TextIO) -> None:
    if isinstance(sink, int):
        return
    sink.seek(0)
    data = sink.read()
    if data:
        stream.write(data.decode("utf-8", "replace"))
        stream.flush()


def _close_feed(feed: _Feed) -> None:
    if feed is not None and not isinstance(feed, bytes):
        with suppress(OSError):
            feed.close()


def _write_async(pipe: IO[bytes], data: bytes) -> threading.Thread:
    def write() -> None:
        try:
            pipe.write(data)
        except OSError:
            pass
        finally:
            with suppress(OSError):
                pipe.close()

    writer = threading.Thread(target=write, daemon=True)
    writer.start()
    return writer


def _environment(shell: Shell) -> dict[str, str]:
    return dict(entry.split("=", 1) for entry in shell.env if "=" in entry)


def _program_problem(command: Command, path: str | None) -> tuple[str, int] | None:
    if path is None or not os.path.exists(path):
        return f"{strip_quotes(command.name)}: command not found", NOT_FOUND
    if os.path.isdir(path):
        return "is a directory", IS_DIRECTORY
    if not os.access(path, os.X_OK):
        return "permission denied", ERR_PERMISSION
    return None


def _start_program(
    shell: Shell,
    command: Command,
    feed: _Feed,
    sink: Any,
    err_sink: Any,
    stderr: TextIO,
    writers: list[threading.Thread],
) -> tuple[subprocess.Popen | int, _Feed]:
    with ExitStack() as stack:
        try:
            redirected_in, redirected_out = stack.enter_context(
                open_redirections(command, None, None)
            )
        except RedirectionError as exc:
            _close_feed(feed)
            stderr.write(f"{exc}\n")
            return 1, b""
        path = resolve_program(shell, command)
        problem = _program_problem(command, path)
        if problem is not None:
            _close_feed(feed)
            message, status = problem
            stderr.write(f"{message}\n")
            return status, b""
        pending: bytes | None = None
        if redirected_in is not None:
            _close_feed(feed)
            stdin: Any = redirected_in
        elif isinstance(feed, bytes):
            stdin = subprocess.PIPE
            pending = feed
        else:
            stdin = feed
        try:
            process = subprocess.Popen(
                command.args,
                executable=path,
                stdin=stdin,
                stdout=redirected_out if redirected_out is not None else sink,
                stderr=err_sink,
                env=_environment(shell),
                preexec_fn=_PREEXEC,
            )
        except OSError as exc:
            _close_feed(feed)
            stderr.write(f"execve: {exc.strerror or exc}\n")
            return 1, b""
        _close_feed(feed)
        if pending is not None and process.stdin is not None:
            writers.append(_write_async(process.stdin, pending))
    if redirected_out is None and sink is subprocess.PIPE:
        return process, process.stdout
    return process, b""


def _run_child_builtin(
    shell: Shell, command: Command, feed: _Feed, stderr: TextIO
) -> tuple[int, bytes]:
    """Run a builtin on a copy of the shell, as a separate stage would."""
    _close_feed(feed)
    child = copy.copy(shell)
    child.env = list(shell.env)
    buffer = io.StringIO()
    try:
        with open_redirections(command, None, None) as (_, redirected):
            if command.name is not None:
                try:
                    run_builtin(child, command, buffer, stderr)
                except ShellExit as done:
                    child.exit_status = done.status
            data = buffer.getvalue().encode("utf-8")
            if redirected is not None:
                redirected.write(data)
                return child.exit_status, b""
    except RedirectionError as exc:
        stderr.write(f"{exc}\n")
        return 1, b""
    return child.exit_status, data


def _run_in_parent(
    shell: Shell, command: Command, stdout: TextIO, stderr: TextIO
) -> None:
    """Run the last command inside the shell so its changes persist."""
    if command.name is None:
        stdout.write(strip_quotes(command.args[0]) + "\n")
    buffer = io.StringIO()
    try:
        with open_redirections(command, None, None) as (_, redirected):
            try:
                if command.name is not None:
                    run_builtin(shell, command, buffer, stderr)
            finally:
                data = buffer.getvalue()
                if redirected is not None:
                    redirected.write(data.encode("utf-8"))
                else:
                    stdout.write(data)
                    stdout.flush()
    except RedirectionError as exc:
        stderr.write(f"{exc}\n")
        shell.exit_status = 1


def execute(
    shell: Shell, commands: Sequence[Command], stdout: TextIO, stderr: TextIO
) -> int:
    """Run a pipeline and return the resulting exit status.

    Stages are waited for in order and each one that finished normally sets
    the status, so a last command run inside the shell is overridden by the
    stages before it. ShellExit from the exit builtin propagates.
    """
    commands = list(commands)
    if not commands:
        return shell.exit_status
    parent_last = runs_in_parent(commands[-1])
    outcomes: list[subprocess.Popen | int] = []
    writers: list[threading.Thread] = []
    with ExitStack() as stack:
        out_sink = _sink_for(stdout, stack)
        err_sink = _sink_for(stderr, stack)
        stdout.flush()
        stderr.flush()
        feed: _Feed = None
        with _sigint_ignored():
            for index, command in enumerate(commands):
                last = index == len(commands) - 1
                if last and parent_last:
                    _close_feed(feed)
                    _run_in_parent(shell, command, stdout, stderr)
                    break
                if last:
                    sink: Any = out_sink
                elif parent_last and index + 2 == len(commands):
                    sink = subprocess.DEVNULL
                else:
                    sink = subprocess.PIPE
                if command.name is not None and not is_builtin(command.name):
                    outcome, feed = _start_program(
                        shell, command, feed, sink, err_sink, stderr, writers
                    )
                else:
                    outcome, data = _run_child_builtin(shell, command, feed, stderr)
                    feed = data if sink is subprocess.PIPE else b""
                    if last and data:
                        stdout.write(data.decode("utf-8", "replace"))
                        stdout.flush()
                outcomes.append(outcome)
            for outcome in outcomes:
                if isinstance(outcome, int):
                    shell.exit_status = outcome
                    continue
                code = outcome.wait()
                if code >= 0:
                    shell.exit_status = code
            for writer in writers:
                writer.join()
        _drain(out_sink, stdout)
        _drain(err_sink, stderr)
    return shell.exit_status