"""JPEG encoding of raw frames (one encode per tick, shared by all clients)."""

from __future__ import annotations

import io
import itertools
import logging
from typing import Protocol

from PIL import Image

from deskview.common.errors import EncodeError
from deskview.common.types import EncodedFrame, Frame

logger = logging.getLogger(__name__)


class FrameEncoder(Protocol):
    """Turns a raw frame into compressed image bytes."""

    def frame_encode(self, frame: Frame) -> EncodedFrame:
        """
        Encode one frame.

        Args:
            frame: Raw frame.

        Returns:
            Immutable encoded frame.

        Raises:
            EncodeError: If the frame cannot be encoded.
        """
        ...


class JpegFrameEncoder:
    """Pillow-backed JPEG encoder."""

    def __init__(self, quality: int = 75) -> None:
        """
        Initialize encoder.

        Args:
            quality: JPEG quality, 1 (smallest) to 95 (best).
        """
        if not 1 <= quality <= 95:
            raise ValueError(f"JPEG quality must be in 1..95, got {quality}")
        self.quality: int = quality
        self._sequence = itertools.count(1)

    def frame_encode(self, frame: Frame) -> EncodedFrame:
        """
        Encode a raw frame as baseline JPEG.

        Args:
            frame: Raw frame (L, RGB or RGBA).

        Returns:
            EncodedFrame with the next sequence number.

        Raises:
            EncodeError: If Pillow rejects the buffer.
        """
        try:
            image = Image.frombytes(frame.mode, (frame.width, frame.height), frame.pixels)
            if image.mode == "RGBA":
                image = image.convert("RGB")
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=self.quality)
        except (OSError, ValueError) as e:
            raise EncodeError(f"JPEG encoding failed: {e}") from e
        return EncodedFrame(data=buffer.getvalue(), sequence=next(self._sequence))
