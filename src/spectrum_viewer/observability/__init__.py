"""
Observability Module
====================

Display-side processing for the spectrum viewer.

This module provides:
    - SpectrumView: Drains the handoff slot and builds display payloads
    - to_dbfs / clamp_dbfs: Bin magnitude to decibels relative to full scale

DESIGN RULES:
    - Does NOT touch the transport
    - Does NOT influence acquisition
"""

from spectrum_viewer.observability.display import (
    SpectrumView,
    clamp_dbfs,
    to_dbfs,
)


__all__ = [
    "SpectrumView",
    "clamp_dbfs",
    "to_dbfs",
]
