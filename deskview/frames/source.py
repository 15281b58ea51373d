"""Frame source contract and the built-in producers"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageDraw

from deskview.common.types import Frame

logger = logging.getLogger(__name__)

# Arrow outline in cursor-local coordinates (tip at origin)
_CURSOR_SHAPE: tuple[tuple[int, int], ...] = (
    (0, 0), (0, 17), (4, 13), (7, 20), (10, 19), (7, 12), (12, 12),
)


class FrameSource(Protocol):
    """Produces an endless sequence of raw frames, one per call."""

    def frame_next(self) -> Frame:
        """
        Produce the next frame.

        May block briefly (for example on a capture device). The sequence is
        not restartable.

        Returns:
            Next raw frame.
        """
        ...


def frameFromImage_build(image: Image.Image) -> Frame:
    """
    Wrap a Pillow image as a raw frame.

    Args:
        image: Image in L, RGB or RGBA mode.

    Returns:
        Frame holding a copy of the image pixels.
    """
    if image.mode not in ("L", "RGB", "RGBA"):
        image = image.convert("RGB")
    width, height = image.size
    return Frame(width=width, height=height, pixels=image.tobytes(), mode=image.mode)


class TestPatternSource:
    """Synthetic moving pattern, used when no capture producer is plugged in."""

    __test__ = False

    def __init__(self, width: int, height: int, show_cursor: bool = True) -> None:
        """
        Initialize test pattern source.

        Args:
            width: Frame width in pixels.
            height: Frame height in pixels.
            show_cursor: Draw a pointer arrow over the pattern.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Width and height must be positive, got {width}x{height}")
        self.width: int = width
        self.height: int = height
        self.show_cursor: bool = show_cursor
        self.frames_produced: int = 0

    def cursorPosition_get(self, index: int) -> tuple[int, int]:
        """
        Position of the synthetic cursor for a given frame index.

        The cursor travels on an ellipse around the frame centre.

        Args:
            index: Frame index.

        Returns:
            Cursor tip (x, y).
        """
        angle = index * 0.1
        x = int(self.width / 2 + math.cos(angle) * self.width / 3)
        y = int(self.height / 2 + math.sin(angle) * self.height / 3)
        return x, y

    def frame_next(self) -> Frame:
        """
        Render the next pattern frame.

        Returns:
            Frame of the configured size.
        """
        index = self.frames_produced
        self.frames_produced += 1

        image = Image.new("RGB", (self.width, self.height), (16, 16, 24))
        draw = ImageDraw.Draw(image)

        bar_width = max(1, self.width // 8)
        bar_x = (index * 4) % (self.width + bar_width) - bar_width
        shade = (index * 3) % 256
        draw.rectangle(
            (bar_x, 0, bar_x + bar_width, self.height - 1),
            fill=(shade, 96, 255 - shade),
        )
        draw.text((8, 8), f"deskview #{index}", fill=(255, 255, 255))

        if self.show_cursor:
            tip_x, tip_y = self.cursorPosition_get(index)
            outline = [(tip_x + dx, tip_y + dy) for dx, dy in _CURSOR_SHAPE]
            draw.polygon(outline, fill=(255, 255, 255), outline=(0, 0, 0))

        return frameFromImage_build(image)


class ImageFileSource:
    """Serves one still image, scaled to the configured size, on every call."""

    def __init__(self, path: str | Path, width: int, height: int) -> None:
        """
        Load and scale the image once.

        Args:
            path: Image file readable by Pillow.
            width: Frame width in pixels.
            height: Frame height in pixels.

        Raises:
            FileNotFoundError: If the file does not exist.
            OSError: If Pillow cannot read the file.
        """
        self.path: Path = Path(path)
        with Image.open(self.path) as opened:
            image = opened.convert("RGB")
        if image.size != (width, height):
            logger.debug(f"Scaling {self.path} from {image.size} to {(width, height)}")
            image = image.resize((width, height))
        self._frame: Frame = frameFromImage_build(image)

    def frame_next(self) -> Frame:
        """Return the cached still frame."""
        return self._frame
