"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TextIO

from .state import Command, Shell
from .syntax import QUOTES
from .textutils import atoi

BUILTINS = frozenset(
    {"exit", "echo", "cd", "pwd", "env", "export", "unset", "clear"}
)
PARENT_BUILTINS = frozenset({"exit", "cd", "env", "unset", "export"})
CLEAR_SCREEN = "\033c"


class ShellExit(Exception):
    """Raised by the exit builtin to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def is_valid_varname(name: str | None) -> bool:
    """Whether ``name`` is non-empty and made only of ASCII letters and ``_``."""
    if not name:
        return False
    return all((char.isascii() and char.isalpha()) or char == "_" for char in name)


def is_numeric(text: str) -> bool:
    """Whether ``text`` has no letters and at most one ``-`` and one ``+``."""
    if text.count("-") > 1 or text.count("+") > 1:
        return False
    return not any(char.isascii() and char.isalpha() for char in text)


def exit_code_from_arg(text: str) -> int:
    """Number given to exit; leading quotes and signs are skipped, any ``-`` negates."""
    pos = 0
    negative = False
    while pos < len(text) and text[pos] in '"+-':
        if text[pos] == "-":
            negative = True
        pos += 1
    number = atoi(text[pos:])
    return -number if negative else number


def strip_quotes(text: str | None) -> str:
    """Text as printed: the outermost quotes of each quoted part are dropped."""
    if not text:
        return ""
    kept: list[str] = []
    quote = ""
    for char in text:
        if char not in QUOTES:
            kept.append(char)
        elif not quote:
            quote = char
        elif char == quote:
            quote = ""
        else:
            kept.append(char)
    return "".join(kept)


def is_echo_flag(text: str | None) -> bool:
    """Whether ``text`` is an echo ``-n`` option such as ``-n`` or ``-nnn``."""
    if not text or not text.startswith("-"):
        return False
    return all(char == "n" for char in text[1:])


def is_builtin(name: str | None) -> bool:
    """Whether ``name`` names a builtin; anything starting with ``$?`` counts too."""
    if not name:
        return False
    return name.startswith("$?") or name in BUILTINS


def runs_in_parent(command: Command) -> bool:
    """Whether the command, as the last of a line, must run in the shell itself.

    That is the case for builtins that change the shell's state, and for a
    nameless command whose first argument starts with a digit.
    """
    if command.name is None:
        return bool(command.args) and command.args[0][:1].isdigit()
    return command.name in PARENT_BUILTINS


def sorted_env_lines(shell: Shell, exported: bool) -> list[str]:
    """Environment entries in byte order, as ``export`` or ``env`` shows them."""
    entries = sorted(shell.env, key=lambda entry: entry.encode("utf-8"))
    if exported:
        return [f"export -x {entry}" for entry in entries]
    return [strip_quotes(entry) for entry in entries if "=" in entry]


def echo(shell: Shell, args: Sequence[str], out: TextIO) -> None:
    """Print the arguments separated by spaces; ``-n`` drops the newline."""
    no_newline = is_echo_flag(args[0] if args else None)
    words = args[1:] if no_newline else args
    out.write(" ".join(strip_quotes(word) for word in words))
    if not no_newline:
        out.write("\n")
    shell.exit_status = 0


def exit_builtin(
    shell: Shell, args: Sequence[str], out: TextIO, err: TextIO
) -> None:
    """Leave the shell by raising ShellExit with the chosen status."""
    out.write("exit\n")
    if len(args) > 1:
        err.write("exit: too many arguments\n")
        shell.exit_status = 1
    elif args and not is_numeric(args[0]):
        err.write("exit: numeric argument required\n")
        shell.exit_status = 2
    elif args:
        shell.exit_status = exit_code_from_arg(args[0]) % 256
    raise ShellExit(shell.exit_status)


def pwd(shell: Shell, out: TextIO, err: TextIO) -> None:
    """Print the working directory."""
    try:
        path = os.getcwd()
    except OSError as exc:
        err.write(f"pwd: {exc.strerror}\n")
        shell.exit_status = 1
        return
    out.write(f"{path}\n")
    shell.exit_status = 0


def _change_dir(target: str | None) -> bool:
    if target is None:
        return False
    try:
        os.chdir(target)
    except OSError:
        return False
    return True


def cd(shell: Shell, args: Sequence[str], err: TextIO) -> None:
    """Change directory; no argument or ``~`` goes to the home directory."""
    if not args or args[0] == "~":
        target = shell.home
    elif len(args) > 1:
        err.write("cd: too many arguments\n")
        shell.exit_status = 1
        return
    else:
        target = args[0]
    if not _change_dir(target):
        err.write("cd: No such file or directory\n")
        shell.exit_status = 1
        return
    shell.exit_status = 0


def env(shell: Shell, args: Sequence[str], out: TextIO, exported: bool) -> None:
    """Print the environment; ``exported`` selects the sorted export form."""
    if args:
        out.write("env: too many arguments\n")
        shell.exit_status = 1
        return
    if exported:
        lines = sorted_env_lines(shell, True)
    else:
        lines = [entry for entry in shell.env if "=" in entry]
    for line in lines:
        out.write(f"{line}\n")
    shell.exit_status = 0


def export(shell: Shell, args: Sequence[str], out: TextIO) -> None:
    """Set variables from ``NAME=value`` arguments, or list them when none."""
    if not args:
        env(shell, args, out, True)
    for arg in args:
        if arg.startswith("export"):
            continue
        shell.exit_status = 0
        eq = arg.find("=")
        if eq == -1 and is_valid_varname(arg):
            add_to_env(shell, arg, arg)
            break
        name = arg[:eq] if eq != -1 else arg
        if is_valid_varname(name):
            add_to_env(shell, arg, name)
        else:
            shell.exit_status = 1


def unset(shell: Shell, args: Sequence[str]) -> None:
    """Remove the named variables."""
    for arg in args:
        if arg.startswith("unset"):
            continue
        if shell.is_env(arg):
            remove_env(shell, arg)
    shell.exit_status = 0


def add_to_env(shell: Shell, entry: str, name: str) -> None:
    """Append ``entry`` after dropping every entry that starts with ``name``."""
    if not is_valid_varname(name):
        return
    shell.env = [item for item in shell.env if not item.startswith(name)]
    shell.env.append(entry)


def remove_env(shell: Shell, name: str) -> None:
    """Drop every environment entry that starts with ``name``."""
    shell.env = [item for item in shell.env if not item.startswith(name)]
    shell.exit_status = 0


def clear(shell: Shell, out: TextIO) -> None:
    """Reset the terminal screen."""
    out.write(CLEAR_SCREEN)
    shell.exit_status = 0