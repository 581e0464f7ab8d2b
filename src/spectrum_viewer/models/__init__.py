"""
Data Models
===========

Typed data passed between acquisition, transform and consumer stages.

Models:
    - Spectrum: One frame's real-FFT bins (numpy, immutable)
    - AcquisitionState: Loop state enum
    - SpectrumOutput: Display-ready dBFS payload
    - AcquisitionStatus: Acquisition health snapshot
"""

from spectrum_viewer.models.spectrum import Spectrum
from spectrum_viewer.models.state import AcquisitionState
from spectrum_viewer.models.output import AcquisitionStatus, SpectrumOutput

__all__ = [
    "Spectrum",
    "AcquisitionState",
    "SpectrumOutput",
    "AcquisitionStatus",
]
