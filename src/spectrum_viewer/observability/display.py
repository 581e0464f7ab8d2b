"""
Display Module
==============

Consumer-side rescaling of published spectra for display.

This module is the spectrum consumer: it drains the handoff slot at its
own pace, keeps the last spectrum while nothing new arrives, and turns
complex bins into clamped dBFS values.

dBFS convention:
    dbfs = 20 * log10(|bin| / (full_scale_amplitude * fft_size))

    with full_scale_amplitude = 2 ** (adc_bits - 1) = 2048 for a 12-bit
    ADC. A full-scale sine lands at 20 * log10(1/2), about -6 dBFS,
    because a real tone splits its energy between the positive and
    negative frequency halves. No frequency weighting is applied (the
    microphone response is unknown, so a PSD would be meaningless).

NEVER FEEDS BACK INTO ACQUISITION.
"""

import logging
from typing import Optional

import numpy as np

from spectrum_viewer.models.output import SpectrumOutput
from spectrum_viewer.models.spectrum import Spectrum
from spectrum_viewer.stream.handoff import SpectrumSlot


logger = logging.getLogger(__name__)


DEFAULT_FULL_SCALE = 2048.0
DEFAULT_MIN_DBFS = -60.0
DEFAULT_MAX_DBFS = 0.0


def to_dbfs(
    bins: np.ndarray,
    fft_size: int,
    full_scale_amplitude: float = DEFAULT_FULL_SCALE,
) -> np.ndarray:
    """
    Convert complex FFT bins to dBFS.

    Empty bins map to -inf; use clamp_dbfs before display.

    Args:
        bins: Complex bins from SpectrumTransform
        fft_size: FFT length the bins were computed with
        full_scale_amplitude: Peak amplitude of a full-scale input

    Returns:
        float64 array of dBFS values
    """
    reference = full_scale_amplitude * fft_size
    magnitude = np.abs(bins).astype(np.float64) / reference
    with np.errstate(divide="ignore"):
        return 20.0 * np.log10(magnitude)


def clamp_dbfs(
    dbfs: np.ndarray,
    min_dbfs: float = DEFAULT_MIN_DBFS,
    max_dbfs: float = DEFAULT_MAX_DBFS,
) -> np.ndarray:
    """Clamp dBFS values into the display window."""
    return np.clip(dbfs, min_dbfs, max_dbfs)


class SpectrumView:
    """
    Latest-spectrum consumer producing display payloads.

    Polls the slot without blocking. When nothing new was published the
    previous spectrum stays on display.

    Attributes:
        slot: SpectrumSlot to drain
        full_scale_amplitude: dBFS reference amplitude
        min_dbfs: Lower display clamp
        max_dbfs: Upper display clamp
        refresh_count: Number of refresh() calls
        updates: Number of refreshes that picked up a new spectrum

    Example:
        view = SpectrumView(slot)

        # Once per display refresh
        view.refresh()
        payload = view.output()
    """

    def __init__(
        self,
        slot: SpectrumSlot,
        full_scale_amplitude: float = DEFAULT_FULL_SCALE,
        min_dbfs: float = DEFAULT_MIN_DBFS,
        max_dbfs: float = DEFAULT_MAX_DBFS,
    ) -> None:
        """
        Initialize spectrum view.

        Args:
            slot: Handoff slot fed by the acquisition loop
            full_scale_amplitude: Half the ADC range (2048 for 12 bits)
            min_dbfs: Lower display bound
            max_dbfs: Upper display bound
        """
        if full_scale_amplitude <= 0:
            raise ValueError("full_scale_amplitude must be positive")
        if min_dbfs >= max_dbfs:
            raise ValueError("min_dbfs must be below max_dbfs")

        self.slot = slot
        self.full_scale_amplitude = full_scale_amplitude
        self.min_dbfs = min_dbfs
        self.max_dbfs = max_dbfs

        self.refresh_count: int = 0
        self.updates: int = 0

        self._current: Optional[Spectrum] = None
        self._output: Optional[SpectrumOutput] = None

    @property
    def current(self) -> Optional[Spectrum]:
        """Spectrum currently on display."""
        return self._current

    def refresh(self) -> bool:
        """
        Pick up a newly published spectrum, if any.

        Returns:
            True if the displayed spectrum changed.
        """
        self.refresh_count += 1
        spectrum = self.slot.get_nowait()
        if spectrum is None:
            return False

        self._current = spectrum
        self._output = None
        self.updates += 1
        return True

    def dbfs(self) -> Optional[np.ndarray]:
        """Clamped dBFS values of the displayed spectrum."""
        if self._current is None:
            return None
        return clamp_dbfs(
            to_dbfs(
                self._current.bins,
                self._current.fft_size,
                self.full_scale_amplitude,
            ),
            self.min_dbfs,
            self.max_dbfs,
        )

    def output(self) -> Optional[SpectrumOutput]:
        """
        Display payload of the current spectrum.

        Computed once per new spectrum and cached.

        Returns:
            SpectrumOutput, or None before the first spectrum.
        """
        if self._current is None:
            return None
        if self._output is not None:
            return self._output

        spectrum = self._current
        levels = self.dbfs()
        peak_index, peak_hz = spectrum.peak()

        self._output = SpectrumOutput(
            frame_id=spectrum.frame_id,
            timestamp=spectrum.timestamp,
            sample_rate_hz=spectrum.sample_rate_hz,
            fft_size=spectrum.fft_size,
            bin_width_hz=spectrum.bin_width_hz,
            peak_frequency_hz=peak_hz,
            peak_dbfs=round(float(levels[peak_index]), 2),
            frequencies_hz=spectrum.frequencies.tolist(),
            dbfs=np.round(levels, 2).tolist(),
        )
        return self._output
