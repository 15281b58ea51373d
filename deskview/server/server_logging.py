"""
Logging for the deskview host process.

Handlers live on the ``deskview`` package logger rather than on the root
logger, so embedding applications keep their own logging untouched. Two
children matter to the host: ``deskview.server`` receives the streaming
server's status lines through ``LoggerSink`` and ``deskview.host`` carries
the client-count updates printed by ``main``.
"""

from __future__ import annotations

import logging

from deskview import __version__

__all__ = [
    "PACKAGE_LOGGER",
    "SERVER_LOGGER",
    "HOST_LOGGER",
    "logging_setup",
    "logLevel_resolve",
    "logFormatWithVersion_get",
]

PACKAGE_LOGGER = "deskview"
SERVER_LOGGER = "deskview.server"
HOST_LOGGER = "deskview.host"


def logging_setup(level: str, log_format: str, log_file: str | None) -> logging.Logger:
    """
    Attach console (and optional file) output to the deskview logger tree.

    Calling it again replaces the handlers installed by the previous call,
    so a reloaded config never doubles every line.

    Args:
        level: Level name from config or --log-level (e.g. ``INFO``)
        log_format: Formatter string; ``%(asctime)s`` gets the version tag
        log_file: Path to also append log lines to, or None

    Returns:
        The ``deskview.host`` logger used for client-count updates

    Raises:
        ValueError: If level is not a logging level name
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(logFormatWithVersion_get(log_format))
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.setLevel(logLevel_resolve(level))
    package_logger.propagate = False
    return logging.getLogger(HOST_LOGGER)


def logLevel_resolve(level: str) -> int:
    """Map a level name such as ``debug`` to its logging constant"""
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def logFormatWithVersion_get(log_format: str) -> str:
    """Tag the timestamp field with the running deskview version"""
    return log_format.replace("%(asctime)s", f"%(asctime)s [v{__version__}]")
