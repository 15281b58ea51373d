"""Common types and data structures for deskview"""

import time
from dataclasses import dataclass, field
from enum import Enum

# Bytes per pixel for the raw modes a frame source may produce
MODE_BANDS: dict[str, int] = {"L": 1, "RGB": 3, "RGBA": 4}


class ServerState(Enum):
    """Lifecycle state of a streaming server"""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass(frozen=True)
class Frame:
    """One raw captured image"""
    width: int
    height: int
    pixels: bytes
    mode: str = "RGB"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Frame size must be positive, got {self.width}x{self.height}")
        if self.mode not in MODE_BANDS:
            raise ValueError(f"Unsupported frame mode '{self.mode}'")
        expected = self.width * self.height * MODE_BANDS[self.mode]
        if len(self.pixels) != expected:
            raise ValueError(
                f"Frame buffer holds {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} {self.mode}"
            )


@dataclass(frozen=True)
class EncodedFrame:
    """Compressed image bytes shared read-only by every client session"""
    data: bytes
    sequence: int
    timestamp: float = field(default_factory=time.monotonic)

    @property
    def size(self) -> int:
        """Length of the encoded payload in bytes"""
        return len(self.data)
