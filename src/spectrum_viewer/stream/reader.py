"""
Frame Reader
============

Splits the raw device byte stream into delimiter-bounded frames.

This module provides the FrameReader class which:
    - Accumulates bytes from the transport into a reusable buffer
    - Extracts the bytes preceding each delimiter as one Frame
    - Keeps bytes after the delimiter for the next frame
    - Sends the capture trigger right after a frame is extracted, so the
      device captures the next frame while the host processes this one

Design Rules:
    - Does NOT parse the payload
    - Timeout without a delimiter is fatal (FramingError), no partial recovery
    - Transport failures are fatal (TransportError)
    - The delimiter is assumed never to appear inside payload data
"""

import logging
import time
from typing import Optional

import serial

from spectrum_viewer.errors import FramingError, TransportError
from spectrum_viewer.stream.frame import Frame
from spectrum_viewer.stream.transport import SerialTransport


logger = logging.getLogger(__name__)


DEFAULT_DELIMITER = 0xFF
DEFAULT_TRIGGER = b"p"

# Exceptions pyserial and OS-level file handles raise on I/O failure
_TRANSPORT_EXCEPTIONS = (serial.SerialException, OSError)


class FrameReader:
    """
    Delimiter-based frame extractor over a SerialTransport.

    Attributes:
        transport: Byte transport (owned by the caller)
        delimiter: Byte terminating each device frame
        trigger: Byte requesting the next capture
        read_timeout: Seconds allowed for one frame to complete
        frames_read: Frames extracted so far
        bytes_received: Bytes read from the transport so far

    Example:
        reader = FrameReader(port, read_timeout=8192.0)
        reader.configure_timeout()
        reader.clear()
        reader.request_capture()

        while True:
            frame = reader.next_frame()  # also triggers the next capture
            process(frame.payload)
    """

    def __init__(
        self,
        transport: SerialTransport,
        delimiter: int = DEFAULT_DELIMITER,
        trigger: bytes = DEFAULT_TRIGGER,
        read_timeout: Optional[float] = 8192.0,
    ) -> None:
        """
        Initialize frame reader.

        Args:
            transport: Transport to read from and send triggers to
            delimiter: Frame terminator byte value (0-255)
            trigger: Single-byte capture command
            read_timeout: Max seconds per frame. None = wait forever.
        """
        if not 0 <= delimiter <= 0xFF:
            raise ValueError("delimiter must be a byte value (0-255)")
        if len(trigger) != 1:
            raise ValueError("trigger must be exactly one byte")
        if read_timeout is not None and read_timeout <= 0:
            raise ValueError("read_timeout must be positive")

        self.transport = transport
        self.delimiter = delimiter
        self.trigger = bytes(trigger)
        self.read_timeout = read_timeout

        self._delimiter_bytes = bytes([delimiter])
        self._buffer = bytearray()
        self._next_frame_id: int = 0

        self.frames_read: int = 0
        self.bytes_received: int = 0

    @property
    def buffered(self) -> int:
        """Bytes held after the last extracted frame."""
        return len(self._buffer)

    def configure_timeout(self) -> None:
        """Apply read_timeout to the transport."""
        try:
            self.transport.timeout = self.read_timeout
        except _TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"Failed to set read timeout: {e}") from e

    def clear(self) -> None:
        """
        Discard stale bytes so the next read starts frame-aligned.

        Clears both the reader's own buffer and the transport's OS buffers.
        """
        dropped = len(self._buffer)
        self._buffer.clear()
        try:
            self.transport.reset_input_buffer()
            self.transport.reset_output_buffer()
        except _TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"Failed to clear transport buffers: {e}") from e

        if dropped:
            logger.debug(f"Discarded {dropped} stale buffered bytes")

    def request_capture(self) -> None:
        """Send the capture trigger to the device."""
        try:
            self.transport.write(self.trigger)
        except _TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"Failed to send capture trigger: {e}") from e

    def cancel(self) -> None:
        """Abort a blocking read, if the transport supports it."""
        cancel_read = getattr(self.transport, "cancel_read", None)
        if cancel_read is not None:
            cancel_read()

    def next_frame(self, request_next: bool = True) -> Frame:
        """
        Block until one complete frame is available.

        Args:
            request_next: Send the capture trigger immediately after the
                frame is extracted, before it is returned for processing

        Returns:
            Frame whose payload is the bytes before the delimiter

        Raises:
            FramingError: Read timed out (or was cancelled) before a
                delimiter arrived
            TransportError: Transport read or trigger write failed
        """
        deadline = (
            None if self.read_timeout is None
            else time.monotonic() + self.read_timeout
        )
        search_from = 0

        while True:
            index = self._buffer.find(self._delimiter_bytes, search_from)
            if index >= 0:
                break
            search_from = len(self._buffer)

            if deadline is not None and time.monotonic() >= deadline:
                raise self._timeout_error()

            chunk = self._read_chunk()
            if not chunk:
                raise self._timeout_error()
            self._buffer += chunk

        payload = bytes(self._buffer[:index])
        # Deleting from the front keeps the bytearray's allocation
        del self._buffer[:index + 1]

        frame = Frame(
            frame_id=self._next_frame_id,
            timestamp=time.time(),
            payload=payload,
        )
        self._next_frame_id += 1
        self.frames_read += 1

        if request_next:
            self.request_capture()

        return frame

    def _read_chunk(self) -> bytes:
        """Read whatever is waiting, or block for at least one byte."""
        try:
            size = max(1, self.transport.in_waiting)
            chunk = self.transport.read(size)
        except _TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"Serial read failed: {e}") from e

        self.bytes_received += len(chunk)
        return chunk

    def _timeout_error(self) -> FramingError:
        return FramingError(
            f"No frame delimiter 0x{self.delimiter:02x} within "
            f"{self.read_timeout}s ({len(self._buffer)} bytes buffered)",
            partial_length=len(self._buffer),
        )
