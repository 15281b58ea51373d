"""deskview server main entry point"""

import argparse
import logging
import signal
import sys
import threading
from typing import Callable, NoReturn, Optional

from deskview.common.errors import BindError
from deskview.common.settings import settings
from deskview.server.bootstrap import (
    configWithSettings_load,
    frameSourceWithConfig_create,
    loggingWithConfig_setup,
)
from deskview.server.log_sink import LoggerSink
from deskview.server.network import StreamingServer
from deskview.server.server_cli import arguments_parse
from deskview.server.server_logging import HOST_LOGGER, SERVER_LOGGER, logging_setup

logger = logging.getLogger(__name__)


def clientCount_poll(
    server: StreamingServer,
    shutdown_event: threading.Event,
    on_change: Callable[[int], None],
    poll_interval_ms: Optional[int] = None,
) -> None:
    """
    Poll the client count until shutdown or until the server stops itself

    Args:
        server: Running server
        shutdown_event: Set by signal handlers to end polling
        on_change: Called with the new count whenever it changes
        poll_interval_ms: Poll period (default: settings.STATUS_POLL_MS)
    """
    interval_ms = settings.STATUS_POLL_MS if poll_interval_ms is None else poll_interval_ms
    last_count = -1
    while not shutdown_event.wait(interval_ms / settings.INTERVAL_DIVISOR):
        if not server.is_running:
            logger.warning("Server stopped unexpectedly")
            break
        count = server.clients_count()
        if count != last_count:
            on_change(count)
            last_count = count


def signalHandlers_install(shutdown_event: threading.Event) -> None:
    """
    Route SIGINT/SIGTERM to the shutdown event

    Args:
        shutdown_event: Event set when a signal arrives
    """
    def handler(signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        shutdown_event.set()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def server_run(args: argparse.Namespace) -> int:
    """
    Run the streaming server until interrupted

    Args:
        args: Parsed command line arguments

    Returns:
        Process exit code
    """
    config = configWithSettings_load(args)
    loggingWithConfig_setup(config, logging_setup)
    frame_source = frameSourceWithConfig_create(config)

    server = StreamingServer(
        config=config.server,
        frame_source=frame_source,
        log_sink=LoggerSink(logging.getLogger(SERVER_LOGGER)),
    )

    try:
        port = server.server_start()
    except BindError as e:
        logger.error(f"{e}")
        return 1

    logger.info(f"Viewers can open http://<this-host>:{port}/ in a browser")

    host_logger = logging.getLogger(HOST_LOGGER)
    shutdown_event = threading.Event()
    signalHandlers_install(shutdown_event)
    try:
        clientCount_poll(
            server,
            shutdown_event,
            on_change=lambda count: host_logger.info(f"Clients connected: {count}"),
        )
    finally:
        server.server_stop()
    return 0


def main() -> NoReturn:
    """Main entry point"""
    args = arguments_parse()

    try:
        exit_code = server_run(args)
    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
