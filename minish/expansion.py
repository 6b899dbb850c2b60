"""Variable expansion and splitting of a command into words."""

from __future__ import annotations

from .state import Shell
from .syntax import QUOTES, change_quote, should_expand


def _at(text: str, pos: int) -> str:
    return text[pos] if 0 <= pos < len(text) else ""


def _is_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


def extract_varname(text: str) -> str:
    """Name following the leading ``$`` of ``text``: letters, digits and ``_``."""
    end = 1
    while end < len(text) and (_is_alnum(text[end]) or text[end] == "_"):
        end += 1
    return text[1:end]


def lookup_variable(shell: Shell, name: str) -> str | None:
    """Value of environment variable ``name``, or None when it is unset."""
    return shell.lookup(name)


def _expand_at(
    shell: Shell, value: str, pos: int, start: int, result: str | None
) -> tuple[str | None, int]:
    """Expand the ``$`` at ``pos``; return the new result and resume point."""
    if pos > start:
        result = (result or "") + value[start:pos]
    end = pos
    if value.startswith("$?", pos):
        replacement: str | None = str(shell.exit_status)
        end += 2
    else:
        replacement = lookup_variable(shell, extract_varname(value[pos:]))
        end += 1
        while end < len(value) and value[end] != " " and _is_alnum(value[end]):
            end += 1
    if replacement is not None:
        result = (result or "") + replacement
    return result, end


def expand_var(shell: Shell, value: str) -> str | None:
    """Replace ``$NAME`` and ``$?`` in ``value``.

    Quote characters are kept. Returns None when nothing at all was produced
    before the end of the word.
    """
    length = len(value)
    result: str | None = None
    quote = ""
    start = 0
    pos = -1
    while True:
        pos += 1
        if pos > length:
            break
        while _at(value, pos) == " " and not quote:
            pos += 1
            if _at(value, pos) != " ":
                start = pos
        char = _at(value, pos)
        if char and char in QUOTES:
            quote = change_quote(quote, char)
        elif char == "$":
            result, start = _expand_at(shell, value, pos, start, result)
        elif char == "" and start != pos and result is not None:
            result += value[start:pos]
    return result


def expand_word(shell: Shell, word: str) -> str | None:
    """Expand one word; None when it is empty or expands to nothing."""
    if not word:
        return None
    if should_expand(word):
        return expand_var(shell, word)
    return word


def split_command(shell: Shell, text: str) -> list[str]:
    """Split ``text`` on unquoted spaces and expand every word.

    Words that expand to nothing are dropped.
    """
    words: list[str] = []
    quote = ""
    pos = 0
    length = len(text)
    while pos < length:
        while pos < length and text[pos] == " " and not quote:
            pos += 1
        start = pos
        while pos < length and (quote or text[pos] != " "):
            if text[pos] in QUOTES:
                quote = change_quote(quote, text[pos])
            pos += 1
        word = expand_word(shell, text[start:pos])
        if word is not None:
            words.append(word)
    return words