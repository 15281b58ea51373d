"""Frame source factory functions."""

from __future__ import annotations

from typing import Optional

from deskview.common.config import ServerConfig
from deskview.frames.source import FrameSource, ImageFileSource, TestPatternSource


def frameSource_create(
    source_name: str,
    server_config: ServerConfig,
    image_path: Optional[str] = None,
) -> FrameSource:
    """
    Create a frame source sized to the server configuration.

    Args:
        source_name: Source identifier ("pattern" or "image")
        server_config: Provides width, height and cursor visibility
        image_path: Image file, required for the "image" source

    Returns:
        Frame source instance
    """
    source = source_name.lower()

    if source == "pattern":
        return TestPatternSource(
            width=server_config.width,
            height=server_config.height,
            show_cursor=server_config.show_cursor,
        )

    if source == "image":
        if not image_path:
            raise ValueError("The 'image' source requires an image path.")
        return ImageFileSource(
            path=image_path,
            width=server_config.width,
            height=server_config.height,
        )

    raise ValueError(f"Unsupported frame source '{source_name}'. Supported: pattern, image.")
