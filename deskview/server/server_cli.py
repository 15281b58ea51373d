"""
Server CLI argument parser construction.

This module owns argument-parser definition so the host loop in `main`
stays focused on running the server rather than CLI schema setup.
"""

from __future__ import annotations

import argparse

from deskview import __version__

__all__ = [
    "arguments_parse",
    "parser_create",
    "coreArgs_populate",
    "streamArgs_populate",
    "sourceArgs_populate",
]


def arguments_parse(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse server command-line arguments.

    Args:
        argv: Argument list (default: sys.argv[1:]).

    Returns:
        Parsed argparse namespace for server startup.
    """
    parser: argparse.ArgumentParser = parser_create()
    return parser.parse_args(argv)


def parser_create() -> argparse.ArgumentParser:
    """
    Create fully populated server argument parser.

    Returns:
        Configured argument parser.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="deskview",
        description="deskview - streams live frames to browsers as MJPEG",
    )
    parser.add_argument("--version", action="version", version=f"deskview {__version__}")
    coreArgs_populate(parser)
    streamArgs_populate(parser)
    sourceArgs_populate(parser)
    return parser


def coreArgs_populate(parser: argparse.ArgumentParser) -> None:
    """
    Populate config, network and logging arguments.

    Args:
        parser: Target argument parser.
    """
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: search standard locations)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )


def streamArgs_populate(parser: argparse.ArgumentParser) -> None:
    """
    Populate frame geometry and stream cadence arguments.

    Args:
        parser: Target argument parser.
    """
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Frame width in pixels (overrides config)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Frame height in pixels (overrides config)",
    )
    parser.add_argument(
        "--cursor",
        action=argparse.BooleanOptionalAction,
        default=None,
        dest="show_cursor",
        help="Draw the cursor into frames (overrides config)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        dest="frame_interval_ms",
        help="Milliseconds between frames, 0 for no delay (overrides config)",
    )
    parser.add_argument(
        "--boundary",
        type=str,
        default=None,
        help="Multipart boundary token (overrides config)",
    )
    parser.add_argument(
        "--quality",
        type=int,
        default=None,
        dest="jpeg_quality",
        help="JPEG quality 1-95 (overrides config)",
    )


def sourceArgs_populate(parser: argparse.ArgumentParser) -> None:
    """
    Populate frame source selection arguments.

    Args:
        parser: Target argument parser.
    """
    parser.add_argument(
        "--source",
        type=str,
        choices=["pattern", "image"],
        default=None,
        help="Frame source to stream (default: pattern)",
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        dest="image_path",
        help="Image file streamed by the 'image' source",
    )
