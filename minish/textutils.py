"""Small string helpers with the exact semantics the shell relies on."""

from __future__ import annotations

_INT_MIN = -(2**31)
_WRAP = 2**32
_OVERFLOW = 2147483648


def _to_int32(value: int) -> int:
    value %= _WRAP
    return value - _WRAP if value >= 2**31 else value


def atoi(text: str) -> int:
    """Parse a leading decimal integer.

    Leading whitespace and one sign are accepted and parsing stops at the
    first non-digit. Positive overflow yields -1 and negative overflow 0.
    """
    pos = 0
    length = len(text)
    while pos < length and (text[pos] == " " or "\t" <= text[pos] <= "\r"):
        pos += 1
    sign = 1
    if pos < length and text[pos] in "+-":
        if text[pos] == "-":
            sign = -1
        pos += 1
    total = 0
    while pos < length and "0" <= text[pos] <= "9":
        total = total * 10 + (ord(text[pos]) - ord("0"))
        if total > _OVERFLOW:
            return -1 if sign > 0 else 0
        pos += 1
    return _to_int32(total * sign)


def split_fields(text: str, sep: str) -> list[str]:
    """Split on ``sep``, dropping the empty fields between repeated separators."""
    return [field for field in text.split(sep) if field]


def strncmp(first: str, second: str, n: int) -> int:
    """Compare at most ``n`` bytes of two strings, C style.

    Returns a negative, zero or positive number; the end of a string
    compares as a zero byte.
    """
    if n <= 0:
        return 0
    left = first.encode("utf-8")
    right = second.encode("utf-8")
    for pos in range(n):
        a = left[pos] if pos < len(left) else 0
        b = right[pos] if pos < len(right) else 0
        if a != b or a == 0:
            return a - b
    return 0