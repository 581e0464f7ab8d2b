"""
Sample Parser
=============

Decodes a frame's text payload into ADC sample values.

Wire format:
    One unsigned decimal integer per line (an optional leading "+" is
    accepted), newline-terminated,
    for example b"2048\n2051\n2047\n".

Failure Policy:
    The protocol has no checksum or length field, so any malformed
    frame is unrecoverable. Nothing is skipped, padded or zero-filled:
    downstream FFT bins are only meaningful for an exact sample count.
"""

import logging
from typing import List, Optional

import numpy as np

from spectrum_viewer.errors import DecodeError, ParseError, SizeError


logger = logging.getLogger(__name__)

# Samples are carried as uint16
MAX_SAMPLE_VALUE = 0xFFFF


class SampleParser:
    """
    Parser for newline-separated decimal sample frames.

    Attributes:
        expected_count: Required number of samples per frame, or None
            to accept any count (length is then checked by the transform)

    Example:
        parser = SampleParser(expected_count=8192)
        samples = parser.parse(frame.payload)
    """

    def __init__(self, expected_count: Optional[int] = None) -> None:
        """
        Initialize sample parser.

        Args:
            expected_count: Exact sample count required per frame.
                None disables the count check.
        """
        if expected_count is not None and expected_count < 1:
            raise ValueError("expected_count must be >= 1")

        self.expected_count = expected_count

    def parse(self, payload: bytes) -> np.ndarray:
        """
        Parse a frame payload into samples.

        Args:
            payload: Frame bytes with the delimiter already stripped

        Returns:
            uint16 array of samples in wire order

        Raises:
            DecodeError: Payload is not valid UTF-8
            ParseError: A line is not an unsigned 16-bit decimal integer
            SizeError: Sample count differs from expected_count
        """
        try:
            text = bytes(payload).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Frame payload is not valid UTF-8: {e}") from e

        values: List[int] = []
        for line_number, line in enumerate(_split_lines(text), start=1):
            values.append(_parse_sample(line, line_number))

        if self.expected_count is not None and len(values) != self.expected_count:
            raise SizeError(expected=self.expected_count, actual=len(values))

        return np.array(values, dtype=np.uint16)


def _split_lines(text: str) -> List[str]:
    """
    Split on newlines, tolerating CRLF and a missing final newline.

    A trailing newline does not produce an extra empty line, but empty
    lines inside the payload are kept so they fail parsing.
    """
    if not text:
        return []

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _parse_sample(line: str, line_number: int) -> int:
    """Parse one line as an unsigned 16-bit decimal integer."""
    digits = line[1:] if line.startswith("+") else line
    # str.isdigit alone accepts non-ASCII digits such as superscripts
    if not (digits.isascii() and digits.isdigit()):
        raise ParseError(line, line_number)

    value = int(digits)
    if value > MAX_SAMPLE_VALUE:
        raise ParseError(line, line_number)
    return value
