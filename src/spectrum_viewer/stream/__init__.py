"""
Stream Module
=============

Serial acquisition and spectrum handoff components.

This module provides the ingestion layer of the spectrum viewer:
    - SerialTransport: Minimal byte transport protocol (pyserial compatible)
    - SimulatedDevice: In-process device speaking the wire protocol
    - Frame: Raw delimiter-bounded device frame
    - FrameReader: Reassembles frames from the byte stream
    - SpectrumSlot: Thread-safe most-recent-value handoff
    - AcquisitionLoop: Read/parse/transform/publish cycle on its own thread

Example:
    from spectrum_viewer.stream import AcquisitionLoop, SpectrumSlot, open_serial

    port = open_serial("/dev/ttyACM0", 115200)
    slot = SpectrumSlot()
    loop = AcquisitionLoop(transport=port, slot=slot)
    loop.start()

    # Consumer side, once per refresh
    spectrum = slot.get_nowait()
"""

from spectrum_viewer.stream.frame import Frame
from spectrum_viewer.stream.transport import SerialTransport, create_transport, open_serial
from spectrum_viewer.stream.simulated import SimulatedDevice
from spectrum_viewer.stream.reader import FrameReader
from spectrum_viewer.stream.handoff import SpectrumSlot
from spectrum_viewer.stream.acquisition import AcquisitionLoop, AcquisitionMetrics


__all__ = [
    "Frame",
    "SerialTransport",
    "SimulatedDevice",
    "create_transport",
    "open_serial",
    "FrameReader",
    "SpectrumSlot",
    "AcquisitionLoop",
    "AcquisitionMetrics",
]
