"""
Acquisition Loop
================

Drives the continuous read -> parse -> transform -> publish cycle.

This module provides the AcquisitionLoop class which:
    - Owns the transport exclusively for its whole lifetime
    - Sets a generous read timeout, clears stale bytes and sends the
      first capture trigger before looping
    - Triggers the next capture as soon as a frame is extracted, before
      parsing it, to hide device acquisition latency
    - Publishes each spectrum to a SpectrumSlot (last value wins)
    - Runs on its own daemon thread

Design Rules:
    - Any AcquisitionError ends the loop: no retry, no reconnect
    - The terminating error is kept and reported through status()
    - stop() is checked between iterations and cancels a pending read
"""

import logging
import threading
import time
from typing import Optional

from spectrum_viewer.errors import AcquisitionError
from spectrum_viewer.models.output import AcquisitionStatus
from spectrum_viewer.models.spectrum import Spectrum
from spectrum_viewer.models.state import AcquisitionState
from spectrum_viewer.signals.sample_parser import SampleParser
from spectrum_viewer.signals.spectrum_transform import SpectrumTransform
from spectrum_viewer.stream.handoff import SpectrumSlot
from spectrum_viewer.stream.reader import FrameReader
from spectrum_viewer.stream.transport import SerialTransport


logger = logging.getLogger(__name__)


class AcquisitionMetrics:
    """Metrics for AcquisitionLoop observability."""

    __slots__ = (
        "frames_received",
        "spectra_published",
        "bytes_received",
        "last_frame_id",
        "last_frame_at",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.spectra_published: int = 0
        self.bytes_received: int = 0
        self.last_frame_id: int = -1
        self.last_frame_at: float = 0.0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "spectra_published": self.spectra_published,
            "bytes_received": self.bytes_received,
            "last_frame_id": self.last_frame_id,
            "last_frame_at": self.last_frame_at,
        }


class AcquisitionLoop:
    """
    Continuous spectrum acquisition from a serial ADC.

    Attributes:
        reader: FrameReader over the owned transport
        parser: SampleParser for frame payloads
        transform: SpectrumTransform for parsed samples
        slot: SpectrumSlot receiving every spectrum
        sample_rate_hz: Device sample rate, attached to each spectrum
        metrics: Operational metrics

    Example:
        slot = SpectrumSlot()
        loop = AcquisitionLoop(transport=port, slot=slot)
        loop.start()

        # Later, stop gracefully
        loop.stop()
        loop.join(timeout=5.0)
    """

    def __init__(
        self,
        transport: SerialTransport,
        slot: SpectrumSlot,
        fft_size: int = 8192,
        sample_rate_hz: float = 96000.0,
        trigger: bytes = b"p",
        delimiter: int = 0xFF,
        read_timeout_seconds: Optional[float] = 8192.0,
        log_every_n_frames: int = 500,
    ) -> None:
        """
        Initialize acquisition loop.

        Args:
            transport: Open transport; the loop becomes its sole user
            slot: Handoff slot to publish spectra into
            fft_size: Samples per frame and FFT length
            sample_rate_hz: Device sample rate (Hz)
            trigger: Single-byte capture command
            delimiter: Device frame terminator byte
            read_timeout_seconds: Transport read timeout, set high since
                the protocol has no keepalive
            log_every_n_frames: Log a progress line every N frames
        """
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be positive")
        if log_every_n_frames < 1:
            raise ValueError("log_every_n_frames must be >= 1")

        self.reader = FrameReader(
            transport,
            delimiter=delimiter,
            trigger=trigger,
            read_timeout=read_timeout_seconds,
        )
        self.parser = SampleParser(expected_count=fft_size)
        self.transform = SpectrumTransform(fft_size=fft_size)
        self.slot = slot
        self.sample_rate_hz = sample_rate_hz
        self.log_every_n_frames = log_every_n_frames

        self.metrics = AcquisitionMetrics()

        self._state: AcquisitionState = AcquisitionState.IDLE
        self._error: Optional[BaseException] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> AcquisitionState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """Error that terminated the loop, if any."""
        return self._error

    @property
    def running(self) -> bool:
        """Whether the acquisition thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> threading.Thread:
        """
        Run the loop on a dedicated daemon thread.

        Returns:
            The started thread.
        """
        if self._thread is not None:
            raise RuntimeError("AcquisitionLoop already started")

        self._thread = threading.Thread(
            target=self.run,
            name="acquisition",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """
        Request the loop to exit.

        Takes effect between iterations; a blocking frame read is
        cancelled when the transport supports cancel_read().
        """
        logger.info("AcquisitionLoop stopping...")
        self._stop_event.set()
        self.reader.cancel()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the acquisition thread to exit.

        Returns:
            True if the thread has exited (or was never started).
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def run(self) -> None:
        """
        Run the acquisition cycle on the calling thread.

        Returns when stop() is called or a fatal AcquisitionError occurs.
        Unexpected exceptions mark the loop FAILED and propagate.
        """
        logger.info(
            f"AcquisitionLoop starting: fft_size={self.transform.fft_size}, "
            f"sample_rate={self.sample_rate_hz}Hz"
        )

        try:
            self._initialize()
            while not self._stop_event.is_set():
                self._step()
            self._state = AcquisitionState.STOPPED

        except AcquisitionError as e:
            if self._stop_event.is_set():
                self._state = AcquisitionState.STOPPED
            else:
                stage = self._state.value
                self._error = e
                self._state = AcquisitionState.FAILED
                logger.error(
                    f"Acquisition aborted by {type(e).__name__} in "
                    f"{stage} after "
                    f"{self.metrics.frames_received} frames: {e}"
                )

        except Exception as e:
            self._error = e
            self._state = AcquisitionState.FAILED
            logger.exception(f"Unexpected acquisition failure: {e}")
            raise

        logger.info(f"AcquisitionLoop stopped ({self._state.value})")

    def status(self) -> AcquisitionStatus:
        """Snapshot of loop health for the service layer."""
        return AcquisitionStatus(
            state=self._state,
            running=self.running,
            error=str(self._error) if self._error else None,
            error_type=type(self._error).__name__ if self._error else None,
            frames_received=self.metrics.frames_received,
            spectra_published=self.metrics.spectra_published,
        )

    def _initialize(self) -> None:
        """Configure the transport and request the first frame."""
        self.reader.configure_timeout()
        self.reader.clear()
        self.reader.request_capture()

    def _step(self) -> None:
        """One AWAIT_FRAME -> PARSE -> TRANSFORM -> PUBLISH cycle."""
        self._state = AcquisitionState.AWAIT_FRAME
        # Triggers the next capture before returning
        frame = self.reader.next_frame(request_next=True)

        self.metrics.frames_received += 1
        self.metrics.bytes_received = self.reader.bytes_received
        self.metrics.last_frame_id = frame.frame_id
        self.metrics.last_frame_at = frame.timestamp
        if self.metrics.frames_received == 1:
            logger.info(f"First frame received: {len(frame)} bytes")

        self._state = AcquisitionState.PARSE
        samples = self.parser.parse(frame.payload)

        self._state = AcquisitionState.TRANSFORM
        bins = self.transform.transform(samples)

        self._state = AcquisitionState.PUBLISH
        self.slot.publish(
            Spectrum(
                frame_id=frame.frame_id,
                timestamp=frame.timestamp,
                bins=bins,
                sample_rate_hz=self.sample_rate_hz,
                fft_size=self.transform.fft_size,
            )
        )
        self.metrics.spectra_published += 1

        if self.metrics.frames_received % self.log_every_n_frames == 0:
            elapsed = time.time() - frame.timestamp
            logger.info(
                f"Acquired {self.metrics.frames_received} frames, "
                f"last frame processed in {elapsed * 1000:.1f}ms"
            )
