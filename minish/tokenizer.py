"""Turning a command line into typed tokens."""

from __future__ import annotations

from .expansion import split_command
from .state import MAX_TOKENS, Shell, Token, TokenType
from .syntax import QUOTES, change_quote


def _at(text: str, pos: int) -> str:
    return text[pos] if 0 <= pos < len(text) else ""


def split_pipes(text: str) -> list[str]:
    """Cut ``text`` at unquoted pipes; the pipes themselves are dropped."""
    segments: list[str] = []
    length = len(text)
    quote = ""
    pos = 0
    while pos < length:
        pos += 1
        while _at(text, pos) == " " and not quote:
            pos += 1
        start = pos - 1
        pos += 1
        while pos < length:
            char = text[pos]
            if char == "|" and not quote:
                break
            if char in QUOTES:
                quote = change_quote(quote, char)
            pos += 1
        segments.append(text[start:pos])
        pos += 1
    return segments


def count_words(text: str) -> int:
    """Number of space separated words, quotes kept together."""
    count = 0
    quote = ""
    for pos, char in enumerate(text):
        if char != " " and (pos == 0 or (not quote and text[pos - 1] == " ")):
            count += 1
        if char in QUOTES:
            quote = change_quote(quote, char)
    return count


def token_type(text: str, first: bool) -> TokenType:
    """Role of word ``text``; ``first`` marks the first word of a command."""
    if text.startswith(">>"):
        return TokenType.APPEND
    if text.startswith("<<"):
        return TokenType.HEREDOC
    if text.startswith("<"):
        return TokenType.RED_IN
    if text.startswith(">"):
        return TokenType.RED_OUT
    if first or text.startswith("$?"):
        return TokenType.CMD
    if text.startswith(("|", "&")):
        return TokenType.PIPE
    return TokenType.ARG


def split_token(text: str, first: bool) -> list[Token]:
    """Tokens of one word; a redirection glued to its target is cut off."""
    tokens: list[Token] = []
    while True:
        kind = token_type(text, first)
        cut = 0
        if kind in (TokenType.RED_IN, TokenType.RED_OUT):
            if _at(text, 1) not in (" ", ""):
                cut = 1
        elif kind in (TokenType.APPEND, TokenType.HEREDOC):
            if _at(text, 2) not in (" ", ""):
                cut = 2
        if not cut:
            tokens.append(Token(kind, text))
            return tokens
        tokens.append(Token(kind, text[:cut]))
        text = text[cut:]
        first = False


def tokenize(shell: Shell, line: str) -> list[Token]:
    """Tokens of a whole command line, at most about MAX_TOKENS of them."""
    tokens: list[Token] = []
    for segment in split_pipes(line)[:MAX_TOKENS]:
        for index, word in enumerate(split_command(shell, segment)):
            if len(tokens) >= MAX_TOKENS:
                break
            tokens.extend(split_token(word, index == 0))
    return tokens