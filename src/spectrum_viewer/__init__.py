"""
Serial Spectrum Viewer
======================

Live spectrum acquisition from a serial-attached ADC.

This package reads delimiter-framed sample dumps from an external device,
removes the DC bias, computes a fixed-size real FFT and hands the most
recent spectrum to an independently paced consumer.

Components:
    - stream: Serial transport, frame reassembly, acquisition loop, handoff slot
    - signals: Sample parsing and the spectrum transform
    - models: Typed data passed between stages
    - observability: Display-side rescaling (dBFS) of published spectra

Example:
    from spectrum_viewer.config import settings
    from spectrum_viewer.stream import AcquisitionLoop, SpectrumSlot

    # The service is started via the FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"
__author__ = "Spectrum Viewer Project"

__all__ = [
    "__version__",
]
