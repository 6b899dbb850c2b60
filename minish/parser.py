"""Building commands from tokens and checking their grammar."""

from __future__ import annotations

from .state import MAX_TOKENS, Command, Shell, Token, TokenType
from .syntax import (
    ShellSyntaxError,
    check_pipes,
    check_quotes,
    count_pipes,
    dup_quoted,
)
from .tokenizer import tokenize

NEWLINE_ERROR = "syntax error near unexpected token `newline`"
PIPE_TOKEN_ERROR = "syntax error near unexpected token `|`"
QUOTE_ERROR = "parse error; unbalanced quotes"

_REDIRECTIONS = (
    TokenType.APPEND,
    TokenType.HEREDOC,
    TokenType.RED_IN,
    TokenType.RED_OUT,
)
_KEEP_QUOTES = ("echo", "export", "exit")


def check_grammar(tokens: list[Token]) -> bool:
    """Check that every redirection is followed by a target.

    Raises ShellSyntaxError otherwise.
    """
    for current, following in zip(tokens, [*tokens[1:], None]):
        if current.type not in _REDIRECTIONS:
            continue
        if following is None:
            raise ShellSyntaxError(NEWLINE_ERROR)
        if following.type in (TokenType.PIPE, TokenType.CMD):
            raise ShellSyntaxError(PIPE_TOKEN_ERROR)
    return True


def add_argument(command: Command, value: str) -> None:
    """Append an argument; quotes are removed except for echo, export, exit."""
    if len(command.args) >= MAX_TOKENS:
        return
    if command.name and command.name not in _KEEP_QUOTES:
        command.args.append(dup_quoted(value))
    else:
        command.args.append(value)


def add_redirection(targets: list[str], value: str, order: list[str]) -> None:
    """Record a redirection target in its own list and in the overall order."""
    target = dup_quoted(value)
    if len(targets) < MAX_TOKENS:
        targets.append(target)
    if len(order) < MAX_TOKENS:
        order.append(target)


def _targets_for(command: Command, kind: TokenType) -> list[str]:
    return {
        TokenType.HEREDOC: command.delimiters,
        TokenType.RED_IN: command.in_red,
        TokenType.APPEND: command.append,
        TokenType.RED_OUT: command.out_red,
    }[kind]


def build_commands(tokens: list[Token]) -> list[Command]:
    """Group tokens into commands; every command token after the first starts a new one."""
    commands = [Command()]
    stream = iter(enumerate(tokens))
    for index, token in stream:
        current = commands[-1]
        if token.type is TokenType.CMD:
            if index > 0:
                current = Command()
                commands.append(current)
            current.name = token.value
            current.args[:1] = [token.value]
        elif token.type is TokenType.ARG:
            add_argument(current, token.value)
        elif token.type in _REDIRECTIONS:
            try:
                _, target = next(stream)
            except StopIteration:
                raise ShellSyntaxError(NEWLINE_ERROR) from None
            add_redirection(
                _targets_for(current, token.type), target.value, current.order
            )
    return commands


def parse_line(shell: Shell, line: str) -> list[Command]:
    """Check, tokenize and parse ``line``, storing the result in ``shell``.

    There is one command per pipeline stage.
    """
    if not check_quotes(line):
        raise ShellSyntaxError(QUOTE_ERROR, status=1)
    check_pipes(line)
    tokens = tokenize(shell, line)
    check_grammar(tokens)
    commands = build_commands(tokens)
    count = count_pipes(line) + 1
    commands.extend(Command() for _ in range(count - len(commands)))
    commands = commands[:count]
    shell.line = line
    shell.tokens = tokens
    shell.commands = commands
    return commands