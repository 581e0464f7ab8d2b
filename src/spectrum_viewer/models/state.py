"""
Acquisition State Models
========================

Discrete states of the acquisition loop.

Normal cycle:
    AWAIT_FRAME -> PARSE -> TRANSFORM -> PUBLISH -> AWAIT_FRAME

Terminal states:
    STOPPED: Loop exited on a stop request
    FAILED: Loop exited on a fatal acquisition error
"""

from enum import Enum


class AcquisitionState(str, Enum):
    """
    Lifecycle state of the acquisition loop.

    Attributes:
        IDLE: Created, not yet started
        AWAIT_FRAME: Blocked on the device frame read
        PARSE: Decoding frame text into samples
        TRANSFORM: Removing DC bias and computing the FFT
        PUBLISH: Handing the spectrum to the slot
        STOPPED: Exited after stop() was requested
        FAILED: Exited after a fatal error
    """

    IDLE = "IDLE"
    AWAIT_FRAME = "AWAIT_FRAME"
    PARSE = "PARSE"
    TRANSFORM = "TRANSFORM"
    PUBLISH = "PUBLISH"
    STOPPED = "STOPPED"
    FAILED = "FAILED"
