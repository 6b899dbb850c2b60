"""Shell state: tokens, parsed commands and the environment."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum

MAX_TOKENS = 100
LEN = 25
HERETXT = "temp_here.txt"
PROMPT = "\001\033[38;5;206m\002Minishell\001\033[0m\002 \u279c "
NOT_FOUND = 127
IS_DIRECTORY = 126
ERR_PERMISSION = 126
ERR_SYNTAX = 2


class TokenType(IntEnum):
    """Kinds of token produced by the tokenizer."""

    CMD = 1
    ARG = 2
    PIPE = 3
    APPEND = 4
    RED_IN = 5
    RED_OUT = 6
    HEREDOC = 7


@dataclass
class Token:
    """One word of a command line with its role."""

    type: TokenType
    value: str


@dataclass
class Command:
    """A single command of a pipeline with its redirections."""

    name: str | None = None
    args: list[str] = field(default_factory=list)
    in_red: list[str] = field(default_factory=list)
    out_red: list[str] = field(default_factory=list)
    append: list[str] = field(default_factory=list)
    delimiters: list[str] = field(default_factory=list)
    order: list[str] = field(default_factory=list)


@dataclass
class Shell:
    """Mutable state of a running shell."""

    env: list[str] = field(default_factory=list)
    user: str | None = None
    home: str | None = None
    exit_status: int = 0
    line: str | None = None
    tokens: list[Token] = field(default_factory=list)
    commands: list[Command] = field(default_factory=list)

    @classmethod
    def from_environ(
        cls, environ: Mapping[str, str] | Iterable[str] | None = None
    ) -> Shell:
        """Build a shell from a mapping or from ``NAME=value`` entries."""
        if environ is None:
            environ = os.environ
        if isinstance(environ, Mapping):
            entries = [f"{key}={value}" for key, value in environ.items()]
        else:
            entries = list(environ)
        shell = cls(env=entries)
        shell.user = shell.lookup("USER")
        shell.home = shell.lookup("HOME")
        return shell

    def is_env(self, prefix: str) -> bool:
        """Whether any environment entry starts with ``prefix``."""
        return any(entry.startswith(prefix) for entry in self.env)

    def lookup(self, name: str) -> str | None:
        """Value of variable ``name``, or None when it is not set."""
        marker = name + "="
        for entry in self.env:
            if entry.startswith(marker):
                return entry[len(marker):]
        return None

    def reset(self) -> None:
        """Forget everything belonging to the last command line."""
        self.line = None
        self.tokens = []
        self.commands = []