"""Log sink contract for embedding applications.

The server hands every human-readable status or error line to a sink. The
embedding application decides where the lines go (a text widget, a file, a
list in a test).
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from deskview.server.server_logging import SERVER_LOGGER

__all__ = ["LogSink", "LoggerSink"]


class LogSink(Protocol):
    """Receives one log line per call."""

    def __call__(self, line: str) -> None:
        """Record one line."""
        ...


class LoggerSink:
    """Sink that forwards lines to a standard library logger."""

    def __init__(self, target: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        """
        Initialize logger sink.

        Args:
            target: Logger to write to (default: the deskview.server logger).
            level: Level used for every line.
        """
        self.target: logging.Logger = target or logging.getLogger(SERVER_LOGGER)
        self.level: int = level

    def __call__(self, line: str) -> None:
        """Forward one line to the logger."""
        self.target.log(self.level, line)
