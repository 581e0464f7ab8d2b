"""
Acquisition Errors
==================

Typed failures raised by the acquisition pipeline.

Every error here is fatal for the acquisition loop. The device protocol
has no checksum, length prefix or sequence number, so a malformed frame
cannot be resynchronized and must never become a plausible-looking
spectrum.

Hierarchy:
    AcquisitionError
        - TransportError: serial read/write failure
        - FramingError: no frame delimiter before the read timeout
        - DecodeError: frame payload is not valid UTF-8
        - ParseError: a sample line is not an unsigned integer
        - SizeError: frame holds the wrong number of samples
"""

from typing import Optional


class AcquisitionError(Exception):
    """Base class for all fatal acquisition failures."""


class TransportError(AcquisitionError):
    """I/O failure while reading from or writing to the device."""


class FramingError(AcquisitionError):
    """
    Frame delimiter not observed before the read timeout.

    Attributes:
        partial_length: Number of bytes buffered without a delimiter
    """

    def __init__(self, message: str, partial_length: int = 0) -> None:
        super().__init__(message)
        self.partial_length = partial_length


class DecodeError(AcquisitionError):
    """Frame payload could not be decoded as UTF-8 text."""


class ParseError(AcquisitionError):
    """
    A sample line could not be parsed as an unsigned integer.

    Attributes:
        line: The offending raw line
        line_number: 1-based position of the line inside the frame
    """

    def __init__(self, line: str, line_number: Optional[int] = None) -> None:
        location = f" (line {line_number})" if line_number is not None else ""
        super().__init__(f"Invalid sample line{location}: {line!r}")
        self.line = line
        self.line_number = line_number


class SizeError(AcquisitionError):
    """
    Frame did not contain exactly the expected number of samples.

    Attributes:
        expected: Required sample count (the FFT size)
        actual: Sample count actually received
    """

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} samples, got {actual}")
        self.expected = expected
        self.actual = actual
