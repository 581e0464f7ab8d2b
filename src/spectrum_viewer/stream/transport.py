"""
Serial Transport
================

Minimal byte transport the acquisition pipeline depends on.

The pipeline only needs to write bytes, read bytes, clear buffers and
set a read timeout. A pyserial ``serial.Serial`` instance satisfies the
SerialTransport protocol directly, as does the SimulatedDevice.

Design Rules:
    - The transport is owned by exactly one acquisition loop
    - pyserial failures are surfaced as TransportError
    - Device discovery is out of scope; the port path is configuration
"""

import logging
from typing import Optional, Protocol, TYPE_CHECKING

import serial

from spectrum_viewer.errors import TransportError

if TYPE_CHECKING:
    from spectrum_viewer.config import Settings


logger = logging.getLogger(__name__)


class SerialTransport(Protocol):
    """
    Protocol for byte transports.

    Implemented by:
        - serial.Serial (real hardware)
        - SimulatedDevice (development and tests)

    Transports may additionally provide ``cancel_read()`` to abort a
    blocking read from another thread.
    """

    timeout: Optional[float]

    @property
    def in_waiting(self) -> int:
        """Number of bytes that can be read without blocking."""
        ...

    def read(self, size: int = 1) -> bytes:
        """Read up to size bytes, returning b'' on timeout."""
        ...

    def write(self, data: bytes) -> Optional[int]:
        ...

    def reset_input_buffer(self) -> None:
        ...

    def reset_output_buffer(self) -> None:
        ...

    def close(self) -> None:
        ...


def open_serial(
    port: str,
    baudrate: int,
    timeout: Optional[float] = None,
) -> serial.Serial:
    """
    Open a pyserial port.

    Args:
        port: Device path, e.g. /dev/ttyACM0 or COM3
        baudrate: Baud rate (arbitrary for USB CDC devices)
        timeout: Read timeout in seconds (None = block forever)

    Returns:
        Open serial.Serial instance

    Raises:
        TransportError: The port could not be opened
    """
    try:
        port_handle = serial.Serial(port, baudrate, timeout=timeout)
    except (serial.SerialException, OSError) as e:
        raise TransportError(f"Failed to open serial port {port}: {e}") from e

    logger.info(f"Opened serial port {port} @ {baudrate} baud")
    return port_handle


def create_transport(settings: "Settings") -> SerialTransport:
    """
    Create the transport selected by config.

    Fails fast on an unknown backend.
    """
    backend = settings.device.backend

    if backend == "serial":
        return open_serial(
            settings.device.port,
            settings.device.baudrate,
            timeout=settings.device.read_timeout_seconds,
        )

    elif backend == "simulated":
        from spectrum_viewer.stream.simulated import SimulatedDevice

        logger.info(
            f"Using SimulatedDevice: tone={settings.simulation.tone_hz}Hz, "
            f"amplitude={settings.simulation.amplitude}"
        )
        return SimulatedDevice(
            sample_rate_hz=settings.spectrum.sample_rate_hz,
            samples_per_frame=settings.spectrum.fft_size,
            tone_hz=settings.simulation.tone_hz,
            amplitude=settings.simulation.amplitude,
            bias=settings.simulation.bias,
            noise=settings.simulation.noise,
            adc_bits=settings.spectrum.adc_bits,
            trigger=settings.device.trigger.encode("ascii"),
            delimiter=settings.device.delimiter,
            realtime=settings.simulation.realtime,
        )

    else:
        raise ValueError(f"Unknown device backend: {backend}")
