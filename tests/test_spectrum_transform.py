"""
Spectrum Transform Tests
========================

Numeric properties of DC removal and the real FFT.
"""

import numpy as np
import pytest

from spectrum_viewer.errors import SizeError
from spectrum_viewer.signals.spectrum_transform import SpectrumTransform, remove_dc

from conftest import FFT_SIZE, SAMPLE_RATE_HZ, tone_samples


class TestRemoveDC:
    """Tests for mean subtraction."""

    def test_centered_mean_is_zero(self, rng):
        samples = rng.integers(0, 4096, size=FFT_SIZE).astype(np.uint16)

        centered = remove_dc(samples)

        assert centered.dtype == np.float32
        assert abs(float(np.mean(centered, dtype=np.float64))) < 1e-3

    def test_full_scale_samples_do_not_overflow(self):
        samples = np.full(FFT_SIZE, 4095, dtype=np.uint16)
        samples[0] = 0

        centered = remove_dc(samples)

        expected_mean = 4095 * (FFT_SIZE - 1) / FFT_SIZE
        assert centered[0] == pytest.approx(-expected_mean, abs=1e-3)

    def test_constant_input_centers_to_zero(self):
        centered = remove_dc(np.full(FFT_SIZE, 2048, dtype=np.uint16))

        assert np.all(centered == 0)


class TestTransform:
    """Tests for the fixed-size real FFT."""

    def test_output_length(self, rng):
        samples = rng.integers(0, 4096, size=FFT_SIZE).astype(np.uint16)

        bins = SpectrumTransform().transform(samples)

        assert bins.shape == (FFT_SIZE // 2 + 1,)
        assert bins.dtype == np.complex64

    def test_constant_input_gives_empty_spectrum(self):
        bins = SpectrumTransform().transform(np.full(FFT_SIZE, 3000, dtype=np.uint16))

        assert np.allclose(np.abs(bins), 0.0, atol=1e-3)

    def test_dc_bin_is_removed(self):
        bins = SpectrumTransform().transform(tone_samples(bin_index=40, amplitude=500))

        assert abs(bins[0]) < 1.0

    @pytest.mark.parametrize("bin_index", [1, 128, 1000, 4000])
    def test_pure_tone_recovery(self, bin_index):
        amplitude = 1000.0
        f0 = bin_index * SAMPLE_RATE_HZ / FFT_SIZE

        bins = SpectrumTransform().transform(tone_samples(bin_index, amplitude))
        magnitude = np.abs(bins)

        assert int(np.argmax(magnitude)) == round(f0 * FFT_SIZE / SAMPLE_RATE_HZ)
        assert magnitude[bin_index] == pytest.approx(amplitude * FFT_SIZE / 2, rel=1e-3)

    def test_short_frame_rejected(self):
        with pytest.raises(SizeError) as exc_info:
            SpectrumTransform().transform(np.zeros(FFT_SIZE - 1, dtype=np.uint16))

        assert exc_info.value.actual == FFT_SIZE - 1

    def test_empty_frame_rejected(self):
        with pytest.raises(SizeError):
            SpectrumTransform().transform(np.zeros(0, dtype=np.uint16))

    def test_long_frame_rejected(self):
        with pytest.raises(SizeError):
            SpectrumTransform(fft_size=16).transform(np.zeros(17, dtype=np.uint16))

    def test_frequencies(self):
        freqs = SpectrumTransform().frequencies(SAMPLE_RATE_HZ)

        assert freqs[0] == 0.0
        assert freqs[1] == pytest.approx(SAMPLE_RATE_HZ / FFT_SIZE)
        assert freqs[-1] == pytest.approx(SAMPLE_RATE_HZ / 2)

    def test_invalid_fft_size(self):
        with pytest.raises(ValueError):
            SpectrumTransform(fft_size=1)
