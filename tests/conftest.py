"""
Test Configuration
==================

Pytest fixtures and test doubles for the spectrum viewer.
"""

from collections import deque
from typing import Iterable, List, Optional

import numpy as np
import pytest

from spectrum_viewer.stream.simulated import encode_frame, synthesize_samples


FFT_SIZE = 8192
SAMPLE_RATE_HZ = 96000.0


class ScriptedTransport:
    """
    SerialTransport double that replays scripted read chunks.

    Each read returns at most the next scripted chunk; once the script
    is exhausted reads return b'' as a timed-out serial port would.
    Every call is recorded in ``events`` so tests can assert ordering.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        read_error: Optional[Exception] = None,
        write_error: Optional[Exception] = None,
    ) -> None:
        self.timeout: Optional[float] = None
        self.read_error = read_error
        self.write_error = write_error
        self.writes: List[bytes] = []
        self.events: List[tuple] = []
        self.cancelled = False
        self.closed = False
        self._chunks = deque(bytes(chunk) for chunk in chunks)

    def feed(self, data: bytes) -> None:
        self._chunks.append(bytes(data))

    @property
    def in_waiting(self) -> int:
        return len(self._chunks[0]) if self._chunks else 0

    def read(self, size: int = 1) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        if not self._chunks:
            self.events.append(("read", b""))
            return b""
        chunk = self._chunks[0]
        data, rest = chunk[:size], chunk[size:]
        if rest:
            self._chunks[0] = rest
        else:
            self._chunks.popleft()
        self.events.append(("read", data))
        return data

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))
        self.events.append(("write", bytes(data)))
        return len(data)

    def reset_input_buffer(self) -> None:
        self.events.append(("reset_input",))

    def reset_output_buffer(self) -> None:
        self.events.append(("reset_output",))

    def cancel_read(self) -> None:
        self.cancelled = True

    def close(self) -> None:
        self.closed = True


def tone_samples(
    bin_index: int,
    amplitude: float,
    fft_size: int = FFT_SIZE,
    bias: float = 2048.0,
) -> np.ndarray:
    """Quantized sine landing exactly on ``bin_index``."""
    return synthesize_samples(
        start_index=0,
        count=fft_size,
        sample_rate_hz=SAMPLE_RATE_HZ,
        tone_hz=bin_index * SAMPLE_RATE_HZ / fft_size,
        amplitude=amplitude,
        bias=bias,
    )


def frame_bytes(samples: Iterable[int]) -> bytes:
    """Wire encoding of one frame, delimiter included."""
    return encode_frame(np.asarray(list(samples), dtype=np.uint16))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
