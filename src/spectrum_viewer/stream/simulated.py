"""
Simulated Device
================

In-process stand-in for the serial ADC.

Answers every trigger byte with one frame in the device wire format:
one decimal sample per line followed by the delimiter byte. Samples are
a biased sine with optional Gaussian noise, quantized to the ADC range.

The phase is continuous across frames, and when ``realtime`` is set each
frame becomes readable only after the time a real capture would take
(samples_per_frame / sample_rate_hz), so the acquisition loop sees the
same cadence it would see with hardware.
"""

import logging
import threading
import time
from collections import deque
from typing import Deque, Optional, Tuple

import numpy as np
import serial


logger = logging.getLogger(__name__)


def synthesize_samples(
    start_index: int,
    count: int,
    sample_rate_hz: float,
    tone_hz: float,
    amplitude: float,
    bias: float,
    noise: float = 0.0,
    adc_bits: int = 12,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generate quantized ADC samples of a biased sine.

    Returns:
        uint16 array of ``count`` samples clipped to [0, 2**adc_bits - 1]
    """
    n = np.arange(start_index, start_index + count, dtype=np.float64)
    signal = bias + amplitude * np.sin(2.0 * np.pi * tone_hz * n / sample_rate_hz)
    if noise > 0:
        rng = rng or np.random.default_rng()
        signal = signal + rng.normal(0.0, noise, size=count)

    full_scale = 2 ** adc_bits - 1
    return np.clip(np.rint(signal), 0, full_scale).astype(np.uint16)


def encode_frame(samples: np.ndarray, delimiter: int = 0xFF) -> bytes:
    """Encode samples in the device wire format."""
    text = "".join(f"{int(value)}\n" for value in samples)
    return text.encode("ascii") + bytes([delimiter])


class SimulatedDevice:
    """
    Deterministic simulated ADC device.

    Implements the SerialTransport protocol.

    Attributes:
        sample_rate_hz: Simulated sample rate
        samples_per_frame: Samples emitted per trigger
        tone_hz: Sine frequency
        timeout: Read timeout in seconds (None = block forever)
        triggers_received: Number of trigger bytes seen
    """

    def __init__(
        self,
        sample_rate_hz: float = 96000.0,
        samples_per_frame: int = 8192,
        tone_hz: float = 1500.0,
        amplitude: float = 1024.0,
        bias: float = 2048.0,
        noise: float = 0.0,
        adc_bits: int = 12,
        trigger: bytes = b"p",
        delimiter: int = 0xFF,
        realtime: bool = False,
        seed: Optional[int] = 0,
    ) -> None:
        if samples_per_frame < 1:
            raise ValueError("samples_per_frame must be >= 1")
        if len(trigger) != 1:
            raise ValueError("trigger must be a single byte")

        self.sample_rate_hz = sample_rate_hz
        self.samples_per_frame = samples_per_frame
        self.tone_hz = tone_hz
        self.amplitude = amplitude
        self.bias = bias
        self.noise = noise
        self.adc_bits = adc_bits
        self.trigger = trigger
        self.delimiter = delimiter
        self.realtime = realtime
        self.timeout: Optional[float] = None
        self.triggers_received: int = 0

        self._rng = np.random.default_rng(seed)
        self._sample_index: int = 0
        self._rx = bytearray()
        self._scheduled: Deque[Tuple[float, bytes]] = deque()
        self._last_ready_at: float = 0.0
        self._cond = threading.Condition()
        self._cancelled: bool = False
        self._open: bool = True

    @property
    def capture_seconds(self) -> float:
        """Time a real device needs to capture one frame."""
        return self.samples_per_frame / self.sample_rate_hz

    @property
    def in_waiting(self) -> int:
        with self._cond:
            self._check_open()
            self._release_due(time.monotonic())
            return len(self._rx)

    def write(self, data: bytes) -> int:
        """Queue one frame per trigger byte in data."""
        with self._cond:
            self._check_open()
            for value in bytes(data):
                if value != self.trigger[0]:
                    logger.debug(f"SimulatedDevice ignoring byte 0x{value:02x}")
                    continue
                self.triggers_received += 1
                self._schedule_frame()
            self._cond.notify_all()
        return len(data)

    def read(self, size: int = 1) -> bytes:
        """
        Read up to size bytes.

        Blocks until at least one byte is available, the timeout elapses
        or cancel_read() is called. Returns b'' on timeout or cancel.
        """
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        with self._cond:
            while True:
                self._check_open()
                now = time.monotonic()
                self._release_due(now)

                if self._rx:
                    chunk = bytes(self._rx[:size])
                    del self._rx[:size]
                    return chunk

                if self._cancelled:
                    self._cancelled = False
                    return b""

                wait = None if deadline is None else deadline - now
                if wait is not None and wait <= 0:
                    return b""
                if self._scheduled:
                    until_ready = max(0.0, self._scheduled[0][0] - now)
                    wait = until_ready if wait is None else min(wait, until_ready)
                self._cond.wait(wait)

    def cancel_read(self) -> None:
        """Abort a blocking read() from another thread."""
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def reset_input_buffer(self) -> None:
        with self._cond:
            self._rx.clear()

    def reset_output_buffer(self) -> None:
        pass

    def close(self) -> None:
        with self._cond:
            self._open = False
            self._cond.notify_all()

    def _check_open(self) -> None:
        if not self._open:
            raise serial.SerialException("Attempting to use a port that is not open")

    def _schedule_frame(self) -> None:
        samples = synthesize_samples(
            start_index=self._sample_index,
            count=self.samples_per_frame,
            sample_rate_hz=self.sample_rate_hz,
            tone_hz=self.tone_hz,
            amplitude=self.amplitude,
            bias=self.bias,
            noise=self.noise,
            adc_bits=self.adc_bits,
            rng=self._rng,
        )
        self._sample_index += self.samples_per_frame

        now = time.monotonic()
        if self.realtime:
            ready_at = max(now, self._last_ready_at) + self.capture_seconds
        else:
            ready_at = now
        self._last_ready_at = ready_at
        self._scheduled.append((ready_at, encode_frame(samples, self.delimiter)))

    def _release_due(self, now: float) -> None:
        while self._scheduled and self._scheduled[0][0] <= now:
            _, data = self._scheduled.popleft()
            self._rx += data
