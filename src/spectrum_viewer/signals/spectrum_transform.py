"""
Spectrum Transform
==================

Converts one frame of raw ADC samples into a real FFT spectrum.

Pipeline:
    1. DC removal: subtract the arithmetic mean of all samples.
       The analog front end is single-ended and biased near mid-scale,
       so without this the zero-frequency bin dwarfs real content.
    2. Forward real-input FFT of the zero-centered buffer, keeping the
       fft_size // 2 + 1 non-redundant bins.

No normalization is applied beyond mean subtraction. Scaling to dBFS is
done by the consumer (see observability.display).
"""

import logging

import numpy as np

from spectrum_viewer.errors import SizeError


logger = logging.getLogger(__name__)


DEFAULT_FFT_SIZE = 8192


def remove_dc(samples: np.ndarray) -> np.ndarray:
    """
    Subtract the mean from every sample.

    The mean is accumulated in float64 so 8192 samples of 4095 cannot
    overflow or lose precision.

    Args:
        samples: 1-D array of raw samples (any numeric dtype)

    Returns:
        float32 array with (approximately) zero mean
    """
    samples = np.asarray(samples)
    if samples.size == 0:
        return np.zeros(0, dtype=np.float32)

    mean = np.mean(samples, dtype=np.float64)
    return (samples.astype(np.float64) - mean).astype(np.float32)


class SpectrumTransform:
    """
    Fixed-size DC-removed real FFT.

    Attributes:
        fft_size: Exact number of samples accepted per call
        num_bins: Output length (fft_size // 2 + 1)

    Example:
        transform = SpectrumTransform(fft_size=8192)
        bins = transform.transform(samples)  # complex64, length 4097
    """

    def __init__(self, fft_size: int = DEFAULT_FFT_SIZE) -> None:
        """
        Initialize spectrum transform.

        Args:
            fft_size: Samples per frame. Must be >= 2.
        """
        if fft_size < 2:
            raise ValueError("fft_size must be >= 2")

        self.fft_size = fft_size

    @property
    def num_bins(self) -> int:
        return self.fft_size // 2 + 1

    def transform(self, samples: np.ndarray) -> np.ndarray:
        """
        Compute the spectrum of one frame.

        Args:
            samples: 1-D array of exactly fft_size samples

        Returns:
            complex64 array of num_bins bins

        Raises:
            SizeError: Sample count differs from fft_size
        """
        samples = np.asarray(samples)
        if samples.ndim != 1 or samples.shape[0] != self.fft_size:
            raise SizeError(expected=self.fft_size, actual=int(samples.size))

        centered = remove_dc(samples)
        return np.fft.rfft(centered).astype(np.complex64, copy=False)

    def frequencies(self, sample_rate_hz: float) -> np.ndarray:
        """Bin center frequencies for the given sample rate."""
        return np.fft.rfftfreq(self.fft_size, d=1.0 / sample_rate_hz)
