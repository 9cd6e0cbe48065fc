"""Unit tests for subtitle timestamp formatting and parsing.

WHY: Every subtitle block carries two timestamps. An off-by-one
millisecond or a wrapped hour field silently shifts subtitles against
the audio, so the exact floor semantics are pinned down here.

RULES:
- format_timestamp truncates (floor), never rounds
- Hours are never wrapped at 24
- Invalid inputs raise InvalidInputError, which is also a ValueError
"""

import math
import re

import pytest

from transcript_relay.core.timecode import format_timestamp, parse_timestamp
from transcript_relay.errors import InvalidInputError

TIMESTAMP_RE = re.compile(r"^\d{2}:\d{2}:\d{2},\d{3}$")


class TestFormatTimestamp:

    def test_zero(self):
        assert format_timestamp(0) == "00:00:00,000"

    def test_hours_minutes_seconds_millis(self):
        assert format_timestamp(3661.5) == "01:01:01,500"

    def test_quarter_second(self):
        assert format_timestamp(1.25) == "00:00:01,250"

    def test_truncates_instead_of_rounding(self):
        assert format_timestamp(1.9999) == "00:00:01,999"
        assert format_timestamp(59.9996) == "00:00:59,999"

    @pytest.mark.parametrize("seconds, expected", [
        (4.35, "00:00:04,350"),
        (2.3, "00:00:02,300"),
    ])
    def test_float_noise_does_not_drop_a_millisecond(self, seconds, expected):
        assert format_timestamp(seconds) == expected

    def test_hours_not_wrapped_at_24(self):
        assert format_timestamp(90000) == "25:00:00,000"

    def test_hours_over_99_widen_field(self):
        assert format_timestamp(360000) == "100:00:00,000"

    def test_integer_input(self):
        assert format_timestamp(75) == "00:01:15,000"

    @pytest.mark.parametrize("seconds", [0, 0.001, 0.5, 12.345, 59.999, 61, 3599.999, 7322.125, 86399.5])
    def test_shape_matches_subtitle_format(self, seconds):
        assert TIMESTAMP_RE.match(format_timestamp(seconds))

    @pytest.mark.parametrize("bad", [-0.001, -5, math.nan, math.inf, -math.inf])
    def test_rejects_negative_and_non_finite(self, bad):
        with pytest.raises(InvalidInputError):
            format_timestamp(bad)

    @pytest.mark.parametrize("bad", ["1.5", None, True])
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(InvalidInputError):
            format_timestamp(bad)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            format_timestamp(-1)


class TestParseTimestamp:

    def test_parses_fields(self):
        assert parse_timestamp("01:01:01,500") == 3661.5

    def test_parses_wide_hours(self):
        assert parse_timestamp("25:00:00,000") == 90000.0

    def test_inverse_of_format(self):
        for text in ["00:00:00,000", "00:00:01,250", "12:34:56,875", "99:59:59,625"]:
            assert format_timestamp(parse_timestamp(text)) == text

    @pytest.mark.parametrize("bad", ["", "1:00:00,000", "00:60:00,000", "00:00:00.000", "00:00:00,00", "garbage"])
    def test_rejects_other_shapes(self, bad):
        with pytest.raises(InvalidInputError):
            parse_timestamp(bad)
