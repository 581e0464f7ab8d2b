"""
Signals Module
==============

Signal processing for acquired ADC frames.

This module turns frame payloads into samples and samples into
spectra. Both stages are pure CPU work with no I/O.
"""

from spectrum_viewer.signals.sample_parser import SampleParser
from spectrum_viewer.signals.spectrum_transform import SpectrumTransform, remove_dc

__all__ = ["SampleParser", "SpectrumTransform", "remove_dc"]
