import pytest

from minish.textutils import atoi, split_fields, strncmp


@pytest.mark.parametrize("text", ["42", "-17", "+8", "0", "2147483647"])
def test_atoi_plain_numbers(text):
    assert atoi(text) == int(text)


def test_atoi_skips_leading_whitespace():
    assert atoi(" \t\n-35") == int("-35")


def test_atoi_stops_at_non_digit():
    assert atoi("12abc") == int("12")


def test_atoi_no_digits():
    assert atoi("abc") == 0


def test_atoi_positive_overflow_is_minus_one():
    assert atoi("99999999999") == -1


def test_atoi_negative_overflow_is_zero():
    assert atoi("-99999999999") == 0


def test_atoi_only_one_sign():
    assert atoi("+-5") == 0


def test_split_fields_drops_empty():
    assert split_fields("::a::b:", ":") == ["a", "b"]


def test_split_fields_preserves_content():
    text = "/usr/bin:/bin::/usr/local/bin"
    fields = split_fields(text, ":")
    assert all(fields)
    assert ":".join(fields) == text.replace("::", ":")


def test_split_fields_empty_input():
    assert split_fields("", ":") == []


def test_strncmp_equal_prefix():
    assert strncmp("exit", "exit", 5) == 0
    assert strncmp("abc", "abd", 2) == 0


def test_strncmp_order():
    assert strncmp("abc", "abd", 3) < 0
    assert strncmp("abd", "abc", 3) > 0


def test_strncmp_terminator_counts():
    assert strncmp("echo", "ech", 5) > 0
    assert strncmp("ech", "echo", 5) < 0
    assert strncmp("echox", "echo", 4) == 0


def test_strncmp_zero_length():
    assert strncmp("a", "b", 0) == 0