"""Frame production and encoding layer."""

from deskview.frames.encoder import FrameEncoder, JpegFrameEncoder
from deskview.frames.factory import frameSource_create
from deskview.frames.source import FrameSource, ImageFileSource, TestPatternSource

__all__ = [
    "FrameEncoder",
    "FrameSource",
    "ImageFileSource",
    "JpegFrameEncoder",
    "TestPatternSource",
    "frameSource_create",
]
