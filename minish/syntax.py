"""Quote tracking and syntax checks on a raw command line."""

from __future__ import annotations

from .state import ERR_SYNTAX

PIPE_ERROR = "parse error near `|`"
QUOTES = "\"'"


class ShellSyntaxError(Exception):
    """A command line that cannot be parsed."""

    def __init__(self, message: str, status: int = ERR_SYNTAX) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def change_quote(quote: str, char: str) -> str:
    """Return the quote state after meeting quote character ``char``.

    An empty string means no quote is open.
    """
    if not quote:
        return char
    if quote == char:
        return ""
    return quote


def check_quotes(text: str) -> bool:
    """Whether every opened quote is closed."""
    quote = ""
    for char in text:
        if char in QUOTES:
            quote = change_quote(quote, char)
    return quote == ""


def should_expand(text: str) -> bool:
    """Whether ``text`` holds a ``$`` that variable expansion applies to."""
    quote = ""
    for pos, char in enumerate(text):
        if char in QUOTES:
            quote = change_quote(quote, char)
        if char == "$" and quote in ("", '"'):
            nxt = text[pos + 1] if pos + 1 < len(text) else ""
            if (quote == "" and nxt not in ("", " ")) or (
                quote == '"' and nxt not in (" ", '"')
            ):
                return True
    return False


def check_pipes(text: str) -> bool:
    """Check the placement of unquoted pipes.

    Raises ShellSyntaxError for a leading, trailing or doubled pipe.
    """
    quote = ""
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in QUOTES:
            quote = change_quote(quote, char)
        elif char == "|" and not quote:
            if pos == 0 or text[pos - 1] == "|" or pos + 1 == length:
                raise ShellSyntaxError(PIPE_ERROR)
            pos += 1
            while pos < length and text[pos] == " ":
                pos += 1
            if pos < length and text[pos] == "|":
                raise ShellSyntaxError(PIPE_ERROR)
            continue
        pos += 1
    return True


def count_pipes(text: str) -> int:
    """Number of pipes outside quotes."""
    quote = ""
    count = 0
    for char in text:
        if char in QUOTES:
            quote = change_quote(quote, char)
        elif char == "|" and not quote:
            count += 1
    return count


def find_len(value: str) -> int:
    """Length of ``value`` once paired double quotes are removed.

    Counting stops at a double quote that has no partner.
    """
    total = 0
    pos = 0
    while pos < len(value):
        if value[pos] == '"':
            end = value.find('"', pos + 1)
            if end == -1:
                break
            total += end - pos - 1
            pos = end + 1
        else:
            total += 1
            pos += 1
    return total


def dup_quoted(value: str) -> str:
    """Copy of ``value`` with paired double quotes removed."""
    parts: list[str] = []
    pos = 0
    while pos < len(value):
        if value[pos] == '"':
            end = value.find('"', pos + 1)
            if end == -1:
                parts.append(value[pos:])
                break
            parts.append(value[pos + 1:end])
            pos = end + 1
        else:
            parts.append(value[pos])
            pos += 1
    return "".join(parts)