"""
Spectrum Slot
=============

Single-slot, most-recent-value handoff between the acquisition thread
and the spectrum consumer.

This module provides the SpectrumSlot class, the ONLY state shared
between the two execution contexts.

Design Rules:
    - One producer (acquisition loop), one consumer (display side)
    - No queueing: a publish overwrites any unread value
    - Readers never see a partially written spectrum
    - Readers never wait on the producer beyond a short critical section
    - Exposes minimal metrics for observability
"""

import logging
import threading
from typing import Optional

from spectrum_viewer.models.spectrum import Spectrum


logger = logging.getLogger(__name__)


class SpectrumSlot:
    """
    Thread-safe latest-value channel for spectra.

    Each publish replaces the stored spectrum and bumps a sequence
    number. Spectra that were overwritten before the consumer took them
    are counted as superseded and otherwise dropped without notice.

    Attributes:
        sequence: Number of spectra published so far
        superseded_count: Spectra overwritten before being taken

    Example:
        slot = SpectrumSlot()

        # Producer thread
        slot.publish(spectrum)

        # Consumer, once per display refresh
        spectrum = slot.get_nowait()
        if spectrum is not None:
            redraw(spectrum)
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._value: Optional[Spectrum] = None
        self._sequence: int = 0
        self._taken_sequence: int = 0
        self._superseded_count: int = 0

    @property
    def sequence(self) -> int:
        """Sequence number of the latest publish (0 = nothing yet)."""
        with self._cond:
            return self._sequence

    @property
    def superseded_count(self) -> int:
        """Spectra overwritten before the consumer took them."""
        with self._cond:
            return self._superseded_count

    def publish(self, spectrum: Spectrum) -> int:
        """
        Replace the stored spectrum.

        Args:
            spectrum: Newly computed spectrum. Ownership passes to the slot.

        Returns:
            Sequence number assigned to this spectrum.
        """
        with self._cond:
            if self._value is not None and self._taken_sequence < self._sequence:
                self._superseded_count += 1
                logger.debug(
                    f"Spectrum {self._value.frame_id} superseded before read. "
                    f"Total superseded: {self._superseded_count}"
                )
            self._value = spectrum
            self._sequence += 1
            self._cond.notify_all()
            return self._sequence

    def latest(self) -> Optional[Spectrum]:
        """
        Peek at the most recent spectrum without marking it taken.

        Returns:
            Latest spectrum, or None before the first publish.
        """
        with self._cond:
            return self._value

    def get_nowait(self) -> Optional[Spectrum]:
        """
        Take the latest spectrum if it has not been taken yet.

        Returns:
            The newest spectrum published since the previous call,
            or None if nothing new has been published.
        """
        with self._cond:
            if self._taken_sequence == self._sequence:
                return None
            self._taken_sequence = self._sequence
            return self._value

    def wait(
        self,
        after_sequence: int = 0,
        timeout: Optional[float] = None,
    ) -> Optional[Spectrum]:
        """
        Block until a spectrum newer than after_sequence is published.

        For callers that choose to block (scripts, tests). The display
        consumer should use get_nowait() instead.

        Args:
            after_sequence: Sequence number already seen
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Latest spectrum, or None if timeout occurred.
        """
        with self._cond:
            published = self._cond.wait_for(
                lambda: self._sequence > after_sequence,
                timeout=timeout,
            )
            return self._value if published else None

    def metrics(self) -> dict:
        """
        Get slot metrics for observability.

        Returns:
            Dict with sequence, published_count, superseded_count, has_value
        """
        with self._cond:
            return {
                "sequence": self._sequence,
                "published_count": self._sequence,
                "superseded_count": self._superseded_count,
                "has_value": self._value is not None,
            }
