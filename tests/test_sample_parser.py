"""
Sample Parser Tests
===================
"""

import numpy as np
import pytest

from spectrum_viewer.errors import DecodeError, ParseError, SizeError
from spectrum_viewer.signals.sample_parser import SampleParser


class TestParse:
    """Tests for well-formed payloads."""

    def test_parses_lines_in_order(self):
        samples = SampleParser().parse(b"2048\n0\n4095\n")

        assert samples.dtype == np.uint16
        assert samples.tolist() == [2048, 0, 4095]

    def test_missing_final_newline(self):
        assert SampleParser().parse(b"1\n2").tolist() == [1, 2]

    def test_crlf_line_endings(self):
        assert SampleParser().parse(b"10\r\n20\r\n").tolist() == [10, 20]

    def test_leading_plus_sign(self):
        assert SampleParser().parse(b"+5\n+0\n+65535\n").tolist() == [5, 0, 65535]

    def test_empty_payload_without_expected_count(self):
        assert SampleParser().parse(b"").size == 0

    def test_expected_count_matches(self):
        payload = b"".join(b"%d\n" % i for i in range(16))
        assert SampleParser(expected_count=16).parse(payload).size == 16


class TestRejection:
    """Malformed frames are rejected, never skipped or zero-filled."""

    def test_non_numeric_line_identified(self):
        with pytest.raises(ParseError) as exc_info:
            SampleParser().parse(b"100\n1x3\n200\n")

        assert exc_info.value.line == "1x3"
        assert exc_info.value.line_number == 2
        assert "1x3" in str(exc_info.value)

    def test_blank_line_inside_payload(self):
        with pytest.raises(ParseError) as exc_info:
            SampleParser().parse(b"1\n\n2\n")

        assert exc_info.value.line == ""

    @pytest.mark.parametrize("line", [b"-1", b"+", b"++5", b"+-1", b" 7", b"3.0", b"65536", b"\xc2\xb2"])
    def test_not_an_unsigned_16_bit_integer(self, line):
        with pytest.raises(ParseError):
            SampleParser().parse(line + b"\n")

    def test_invalid_utf8(self):
        with pytest.raises(DecodeError):
            SampleParser().parse(b"12\n\xfe\xfe\n")

    def test_empty_frame_is_size_error(self):
        with pytest.raises(SizeError) as exc_info:
            SampleParser(expected_count=8192).parse(b"")

        assert exc_info.value.expected == 8192
        assert exc_info.value.actual == 0

    def test_short_frame_is_size_error(self):
        with pytest.raises(SizeError):
            SampleParser(expected_count=4).parse(b"1\n2\n3\n")

    def test_long_frame_is_size_error(self):
        with pytest.raises(SizeError):
            SampleParser(expected_count=2).parse(b"1\n2\n3\n")

    def test_invalid_expected_count(self):
        with pytest.raises(ValueError):
            SampleParser(expected_count=0)
