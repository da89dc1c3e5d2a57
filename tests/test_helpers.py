"""
Tests for helper utilities.
"""

import pytest

from relaybox.utils.helpers import format_duration, single_line, truncate_string


class TestTruncateString:
    """Tests for truncate_string function."""

    def test_short_string(self):
        assert truncate_string("Hello", 10) == "Hello"

    def test_exact_length(self):
        assert truncate_string("Hello", 5) == "Hello"

    def test_truncation(self):
        result = truncate_string("Hello World", 8)
        assert result == "Hello..."
        assert len(result) == 8

    def test_custom_suffix(self):
        assert truncate_string("Hello World", 6, suffix="~") == "Hello~"


class TestSingleLine:
    """Tests for single_line function."""

    def test_collapses_whitespace(self):
        assert single_line('{\n  "a": 1,\n\t"b": 2\n}') == '{ "a": 1, "b": 2 }'

    def test_truncates(self):
        assert single_line("x" * 100, max_length=10) == "xxxxxxx..."

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty(self, text):
        assert single_line(text) == ""


class TestFormatDuration:
    """Tests for format_duration function."""

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "0.0s"),
            (-5, "0.0s"),
            (4.24, "4.2s"),
            (59.9, "59.9s"),
            (60, "1m"),
            (90, "1m 30s"),
            (3600, "1h"),
            (9015, "2h 30m 15s"),
            (90061, "25h 1m 1s"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected
