"""
Spectrum Model
==============

One transformed frame: the non-redundant half of a real FFT.

Bin ``i`` corresponds to frequency ``i * sample_rate_hz / fft_size``.
Bins hold raw complex amplitudes; no normalization has been applied
beyond DC removal. Display scaling lives in observability.display.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True, eq=False)
class Spectrum:
    """
    Published spectrum for a single frame.

    Produced by the acquisition loop, owned by the handoff slot after
    publish. The bins array is made read-only so consumers cannot mutate
    a value the producer has already handed over.

    Attributes:
        frame_id: Id of the frame this spectrum was computed from
        timestamp: UNIX timestamp of the source frame
        bins: complex64 array of length fft_size // 2 + 1
        sample_rate_hz: Device sample rate
        fft_size: Number of time-domain samples transformed
    """

    frame_id: int
    timestamp: float
    bins: np.ndarray
    sample_rate_hz: float
    fft_size: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.bins.shape != (self.fft_size // 2 + 1,):
            raise ValueError(
                f"bins must have length {self.fft_size // 2 + 1}, "
                f"got shape {self.bins.shape}"
            )
        self.bins.flags.writeable = False

    @property
    def bin_width_hz(self) -> float:
        """Frequency spacing between adjacent bins."""
        return self.sample_rate_hz / self.fft_size

    @property
    def frequencies(self) -> np.ndarray:
        """Center frequency of every bin (Hz)."""
        return np.fft.rfftfreq(self.fft_size, d=1.0 / self.sample_rate_hz)

    @property
    def magnitudes(self) -> np.ndarray:
        """Absolute amplitude of every bin."""
        return np.abs(self.bins)

    def peak(self) -> tuple[int, float]:
        """Return (bin index, frequency in Hz) of the largest bin."""
        index = int(np.argmax(self.magnitudes))
        return index, index * self.bin_width_hz

    def __repr__(self) -> str:
        return (
            f"Spectrum(frame_id={self.frame_id}, "
            f"timestamp={self.timestamp:.3f}, "
            f"bins={len(self.bins)})"
        )
