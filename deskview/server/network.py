"""TCP streaming server: listener, client registry and shared frame ticks"""

import logging
import socket
import threading
from typing import List, Optional, Set

from deskview.common.config import ServerConfig
from deskview.common.errors import AcceptError, AlreadyRunningError, BindError, EncodeError
from deskview.common.settings import settings
from deskview.common.types import EncodedFrame, ServerState
from deskview.frames.encoder import FrameEncoder, JpegFrameEncoder
from deskview.frames.source import FrameSource, TestPatternSource
from deskview.server.log_sink import LogSink
from deskview.server.session import ClientSession

logger = logging.getLogger(__name__)


class StreamingServer:
    """Streams frames from one source to every connected viewer

    Threads:
        accept loop  - one, turns connections into ClientSessions
        tick loop    - one, pulls, encodes once and broadcasts each frame
        sessions     - one per client, writes its own queued frames

    The client registry is guarded by a single lock that is never held
    during socket I/O and never nested with the state lock.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        frame_source: Optional[FrameSource] = None,
        frame_encoder: Optional[FrameEncoder] = None,
        log_sink: Optional[LogSink] = None,
    ) -> None:
        """
        Initialize streaming server

        Args:
            config: Server configuration (default: 800x600 with cursor)
            frame_source: Frame producer (default: synthetic test pattern)
            frame_encoder: Frame encoder (default: JPEG at config quality)
            log_sink: Receives status/error lines (default: module logger)
        """
        self.config: ServerConfig = config or ServerConfig(width=800, height=600)
        self._frame_source: FrameSource = frame_source or TestPatternSource(
            width=self.config.width,
            height=self.config.height,
            show_cursor=self.config.show_cursor,
        )
        self._frame_encoder: FrameEncoder = frame_encoder or JpegFrameEncoder(
            quality=self.config.jpeg_quality
        )
        self._frame_interval_ms: int = self.config.frame_interval_ms
        self._log_sink: Optional[LogSink] = log_sink

        self._state: ServerState = ServerState.STOPPED
        self._state_lock = threading.Lock()
        self._clients: Set[ClientSession] = set()
        self._clients_lock = threading.Lock()

        self._listener: Optional[socket.socket] = None
        self._stop_event = threading.Event()
        self._accept_thread: Optional[threading.Thread] = None
        self._tick_thread: Optional[threading.Thread] = None
        self.port: Optional[int] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        """Current lifecycle state"""
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        """True while the server accepts and streams"""
        return self.state is ServerState.RUNNING

    @property
    def frame_source(self) -> FrameSource:
        """Frame producer; a replacement is used from the next tick on"""
        return self._frame_source

    @frame_source.setter
    def frame_source(self, source: FrameSource) -> None:
        self._frame_source = source

    @property
    def frame_interval_ms(self) -> int:
        """Delay between ticks in milliseconds; 0 streams as fast as possible"""
        return self._frame_interval_ms

    @frame_interval_ms.setter
    def frame_interval_ms(self, interval_ms: int) -> None:
        if interval_ms < 0:
            raise ValueError(f"frame_interval_ms must be >= 0, got {interval_ms}")
        self._frame_interval_ms = interval_ms

    def logSink_set(self, sink: Optional[LogSink]) -> None:
        """
        Replace the log sink; later lines go to the new sink

        Args:
            sink: New sink, or None to log through the module logger
        """
        self._log_sink = sink

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def server_start(self, port: Optional[int] = None) -> int:
        """
        Bind the listener and start the accept and tick threads

        Args:
            port: Port to listen on (default: config.port); 0 picks a free port

        Returns:
            The port actually bound

        Raises:
            AlreadyRunningError: If the server is not stopped
            BindError: If the port is unavailable
        """
        port = self.config.port if port is None else port

        with self._state_lock:
            if self._state is not ServerState.STOPPED:
                raise AlreadyRunningError(f"Server is already {self._state.value}")
            self._state = ServerState.STARTING

        try:
            listener = self._listener_open(port)
        except OSError as e:
            with self._state_lock:
                self._state = ServerState.STOPPED
            error = BindError(port, str(e))
            self._log_write(str(error), logging.ERROR)
            raise error from e

        stop_event = threading.Event()
        with self._state_lock:
            self._listener = listener
            self._stop_event = stop_event
            self.port = listener.getsockname()[1]
            self._state = ServerState.RUNNING

        self._accept_thread = threading.Thread(
            target=self._accept_loop,
            args=(listener, stop_event),
            name="deskview-accept",
            daemon=True,
        )
        self._tick_thread = threading.Thread(
            target=self._tick_loop,
            args=(stop_event,),
            name="deskview-tick",
            daemon=True,
        )
        self._accept_thread.start()
        self._tick_thread.start()

        self._log_write(f"Server started on port: {self.port}.")
        return self.port

    def server_stop(self) -> None:
        """
        Stop listening and force-close every client; no-op when stopped

        Safe to call from any thread, including the server's own loops.
        """
        with self._state_lock:
            if self._state is not ServerState.RUNNING:
                return
            self._state = ServerState.STOPPING
            stop_event = self._stop_event
            listener = self._listener
            self._listener = None

        stop_event.set()
        if listener is not None:
            self._listener_close(listener)

        with self._clients_lock:
            sessions: List[ClientSession] = list(self._clients)
            self._clients.clear()
        for session in sessions:
            session.session_close()

        current = threading.current_thread()
        for thread in (self._accept_thread, self._tick_thread):
            if thread is not None and thread is not current:
                thread.join(settings.JOIN_TIMEOUT_SEC)
        for session in sessions:
            session.session_join(settings.JOIN_TIMEOUT_SEC)

        with self._state_lock:
            self._accept_thread = None
            self._tick_thread = None
            self._state = ServerState.STOPPED

        self._log_write("Server stopped.")

    def __enter__(self) -> "StreamingServer":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.server_stop()

    # ------------------------------------------------------------------
    # Client registry
    # ------------------------------------------------------------------

    def clients_count(self) -> int:
        """
        Get number of connected clients

        Returns:
            Number of registered sessions
        """
        with self._clients_lock:
            return len(self._clients)

    def clients_snapshot(self) -> List[str]:
        """
        Get remote addresses of connected clients

        Returns:
            host:port strings, oldest connection first
        """
        with self._clients_lock:
            sessions = sorted(self._clients, key=lambda s: s.created_at)
        return [session.address_text for session in sessions]

    def _client_add(self, session: ClientSession, stop_event: threading.Event) -> bool:
        """Register a session unless the server is stopping"""
        with self._clients_lock:
            if stop_event.is_set():
                return False
            self._clients.add(session)
            return True

    def _client_remove(self, session: ClientSession) -> None:
        """Deregister a session (idempotent)"""
        with self._clients_lock:
            self._clients.discard(session)

    # ------------------------------------------------------------------
    # Accept loop
    # ------------------------------------------------------------------

    def _listener_open(self, port: int) -> socket.socket:
        """Create, bind and listen on all configured interfaces"""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.config.host, port))
            listener.listen(self.config.accept_backlog)
            listener.settimeout(settings.ACCEPT_POLL_SEC)
        except OSError:
            listener.close()
            raise
        return listener

    def _listener_close(self, listener: socket.socket) -> None:
        """Close the listener so accept() fails promptly"""
        try:
            listener.close()
        except OSError as e:
            logger.error(f"Error closing server socket: {e}")

    def _accept_loop(self, listener: socket.socket, stop_event: threading.Event) -> None:
        """Accept connections until the stop event is set or the listener fails"""
        while not stop_event.is_set():
            try:
                client_socket, address = listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if stop_event.is_set():
                    break
                error = AcceptError(f"Accept failed: {e}")
                self._log_write(str(error), logging.ERROR)
                self.server_stop()
                break
            self._client_accept(client_socket, address, stop_event)

    def _client_accept(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        stop_event: threading.Event,
    ) -> None:
        """Wrap an accepted socket in a session, register and start it"""
        try:
            session = ClientSession(
                client_socket=client_socket,
                address=address,
                boundary=self.config.boundary,
                queue_size=self.config.client_queue_size,
                send_timeout_sec=self.config.send_timeout_sec,
                on_close=self._client_remove,
                log_write=self._log_write,
            )
        except OSError as e:
            self._log_write(f"Rejecting client {address[0]}:{address[1]}: {e}", logging.WARNING)
            client_socket.close()
            return

        if not self._client_add(session, stop_event):
            session.session_close()
            return
        self._log_write(f"New client from: {session.address_text}")
        session.session_start()

    # ------------------------------------------------------------------
    # Frame tick loop
    # ------------------------------------------------------------------

    def _tick_loop(self, stop_event: threading.Event) -> None:
        """Produce, encode and broadcast one frame per tick"""
        while not stop_event.is_set():
            interval_sec = self._frame_interval_ms / settings.INTERVAL_DIVISOR

            if self.clients_count() == 0:
                stop_event.wait(max(interval_sec, settings.IDLE_POLL_SEC))
                continue

            try:
                frame = self._frame_source.frame_next()
            except Exception as e:
                self._log_write(f"Frame source failed: {e}", logging.ERROR)
                self.server_stop()
                break

            try:
                encoded = self._frame_encoder.frame_encode(frame)
            except EncodeError as e:
                self._log_write(str(e), logging.ERROR)
            except Exception as e:
                self._log_write(f"Frame encoder failed: {e}", logging.ERROR)
                self.server_stop()
                break
            else:
                if not stop_event.is_set():
                    self._frame_broadcast(encoded)

            if interval_sec > 0:
                stop_event.wait(interval_sec)

    def _frame_broadcast(self, encoded: EncodedFrame) -> None:
        """
        Hand one encoded frame to every registered session

        Args:
            encoded: Frame shared by reference across sessions
        """
        with self._clients_lock:
            sessions: List[ClientSession] = list(self._clients)
        for session in sessions:
            session.frame_offer(encoded)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _log_write(self, message: str, level: int = logging.INFO) -> None:
        """
        Emit one status/error line to the sink, or to the module logger

        Args:
            message: Human-readable line
            level: Level used when no sink is set
        """
        sink = self._log_sink
        if sink is None:
            logger.log(level, message)
            return
        try:
            sink(message)
        except Exception as e:
            logger.error(f"Log sink failed: {e}")
            logger.log(level, message)
