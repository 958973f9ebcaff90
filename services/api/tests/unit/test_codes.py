"""Unit tests for short code generation and format checks."""

import re
from unittest.mock import patch

import pytest

from app.services.codes import (
    SHORT_CODE_CHARS,
    generate_fallback_short_code,
    generate_short_code,
    is_reserved_short_code,
    is_valid_short_code,
)

CODE_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def test_alphabet_is_base62():
    assert len(SHORT_CODE_CHARS) == 62
    assert len(set(SHORT_CODE_CHARS)) == 62


def test_generate_default_length():
    code = generate_short_code()
    assert len(code) == 5
    assert all(ch in SHORT_CODE_CHARS for ch in code)


@pytest.mark.parametrize("length", [3, 5, 8, 20])
def test_generated_codes_match_the_code_format(length):
    for _ in range(50):
        code = generate_short_code(length)
        assert len(code) == length
        assert CODE_RE.match(code)
        assert is_valid_short_code(code)


@pytest.mark.parametrize("length", [0, 2, 21])
def test_generate_rejects_out_of_range_length(length):
    with pytest.raises(ValueError):
        generate_short_code(length)
    with pytest.raises(ValueError):
        generate_fallback_short_code(length)


def test_fallback_has_same_shape():
    code = generate_fallback_short_code(7)
    assert len(code) == 7
    assert all(ch in SHORT_CODE_CHARS for ch in code)


def test_falls_back_when_secure_source_is_unavailable():
    with patch("app.services.codes.secrets.choice", side_effect=NotImplementedError("no urandom")), \
            patch("app.services.codes.generate_fallback_short_code", return_value="Fb123") as fallback:
        assert generate_short_code(5) == "Fb123"
    fallback.assert_called_once_with(5)


def test_generated_codes_vary():
    codes = {generate_short_code(8) for _ in range(100)}
    assert len(codes) > 95


@pytest.mark.parametrize("code", ["abc", "my-link", "my_link", "A1b2C3", "x" * 20])
def test_valid_short_codes(code):
    assert is_valid_short_code(code)


@pytest.mark.parametrize(
    "code",
    ["ab", "x" * 21, "has space", "slash/", "dot.", "ümlaut", "", None, 123],
)
def test_invalid_short_codes(code):
    assert not is_valid_short_code(code)


def test_reserved_short_codes():
    assert is_reserved_short_code("metrics")
    assert is_reserved_short_code("redoc")
    assert not is_reserved_short_code("Redoc")
    assert not is_reserved_short_code("abc12")
