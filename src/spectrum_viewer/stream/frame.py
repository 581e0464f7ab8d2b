"""
Frame Data Model
=================

Raw device frame as extracted by the FrameReader.

Design Rules:
    - Payload is the bytes preceding the delimiter (delimiter stripped)
    - Does NOT decode or parse the payload
    - Immutable once extracted
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Frame:
    """
    One delimiter-bounded unit of device output.

    Attributes:
        frame_id: Monotonically increasing counter assigned by the reader
        timestamp: UNIX timestamp when the delimiter was observed
        payload: Raw bytes preceding the delimiter
    """

    frame_id: int
    timestamp: float
    payload: bytes

    def __len__(self) -> int:
        return len(self.payload)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full payload."""
        return (
            f"Frame(frame_id={self.frame_id}, "
            f"timestamp={self.timestamp:.3f}, "
            f"bytes={len(self.payload)})"
        )
