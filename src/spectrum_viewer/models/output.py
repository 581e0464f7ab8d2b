"""
Service Output Models
=====================

This module defines the payloads served to spectrum consumers.

Output Contract (GET /spectrum, WS /ws/spectrum):
    {
        "frame_id": 412,
        "timestamp": 1770500938.284,
        "sample_rate_hz": 96000.0,
        "fft_size": 8192,
        "bin_width_hz": 11.71875,
        "peak_frequency_hz": 1500.0,
        "peak_dbfs": -6.02,
        "frequencies_hz": [0.0, 11.71875, ...],
        "dbfs": [-60.0, -60.0, ...]
    }

Design Rules:
    - dBFS values are display values, already clamped
    - Frequencies and dBFS have the same length (fft_size // 2 + 1)
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from spectrum_viewer.models.state import AcquisitionState


class SpectrumOutput(BaseModel):
    """
    Display-ready spectrum.

    Attributes:
        frame_id: Source frame id
        timestamp: Source frame UNIX timestamp
        sample_rate_hz: Device sample rate
        fft_size: FFT length
        bin_width_hz: Spacing between bins
        peak_frequency_hz: Frequency of the strongest bin
        peak_dbfs: Level of the strongest bin
        frequencies_hz: Bin center frequencies
        dbfs: Clamped bin levels relative to a full-scale sine
    """

    frame_id: int = Field(..., ge=0, description="Source frame id")
    timestamp: float = Field(..., description="Source frame UNIX timestamp")
    sample_rate_hz: float = Field(..., gt=0, description="Sample rate (Hz)")
    fft_size: int = Field(..., ge=2, description="FFT length")
    bin_width_hz: float = Field(..., gt=0, description="Bin spacing (Hz)")
    peak_frequency_hz: float = Field(..., ge=0, description="Strongest bin frequency")
    peak_dbfs: float = Field(..., description="Strongest bin level (dBFS)")
    frequencies_hz: List[float] = Field(..., description="Bin frequencies (Hz)")
    dbfs: List[float] = Field(..., description="Bin levels (dBFS)")

    @model_validator(mode="after")
    def _aligned(self) -> "SpectrumOutput":
        if len(self.frequencies_hz) != len(self.dbfs):
            raise ValueError("frequencies_hz and dbfs must have the same length")
        return self


class AcquisitionStatus(BaseModel):
    """
    Health snapshot of the acquisition subsystem.

    Attributes:
        state: Current loop state
        running: Whether the acquisition thread is alive
        error: Message of the terminating error, if any
        error_type: Class name of the terminating error, if any
        frames_received: Frames extracted from the device
        spectra_published: Spectra handed to the slot
    """

    state: AcquisitionState
    running: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    frames_received: int = Field(default=0, ge=0)
    spectra_published: int = Field(default=0, ge=0)
