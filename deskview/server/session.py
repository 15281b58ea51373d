"""Per-client streaming session"""

import logging
import queue
import socket
import threading
import time
from typing import Callable, Optional

from deskview.common.errors import ClientIOError
from deskview.common.settings import settings
from deskview.common.types import EncodedFrame
from deskview.protocol.multipart import MultipartWriter, request_read

logger = logging.getLogger(__name__)

LogWriter = Callable[[str, int], None]


class ClientSession:
    """Serves one accepted connection from header to disconnect"""

    def __init__(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        boundary: str,
        queue_size: int,
        send_timeout_sec: float,
        on_close: Callable[["ClientSession"], None],
        log_write: LogWriter,
    ) -> None:
        """
        Initialize client session

        Args:
            client_socket: Accepted client socket
            address: Client address (host, port)
            boundary: Multipart boundary token
            queue_size: Maximum frames waiting to be written
            send_timeout_sec: Socket timeout for each write
            on_close: Called once when the session ends, for deregistration
            log_write: Receives (line, level) for user-visible log lines
        """
        self.socket: socket.socket = client_socket
        self.address: tuple[str, int] = address
        self.boundary: str = boundary
        self.created_at: float = time.time()
        self.is_alive: bool = True
        self.frames_sent: int = 0
        self.frames_dropped: int = 0

        self._frames: "queue.Queue[Optional[EncodedFrame]]" = queue.Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self._on_close = on_close
        self._log_write = log_write
        self._thread: Optional[threading.Thread] = None

        self.socket.settimeout(send_timeout_sec)
        self.socket.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

    @property
    def address_text(self) -> str:
        """Remote address as host:port"""
        return f"{self.address[0]}:{self.address[1]}"

    def session_start(self) -> None:
        """Start the send thread"""
        self._thread = threading.Thread(
            target=self._session_run,
            name=f"deskview-client-{self.address_text}",
            daemon=True,
        )
        self._thread.start()

    def frame_offer(self, encoded: EncodedFrame) -> bool:
        """
        Queue a frame for this client without blocking

        When the queue is full the oldest waiting frame is dropped, so a slow
        client skips frames but still sees them in order.

        Args:
            encoded: Shared encoded frame

        Returns:
            False if the session is already closed
        """
        if self._closed.is_set():
            return False
        while True:
            try:
                self._frames.put_nowait(encoded)
                return True
            except queue.Full:
                try:
                    self._frames.get_nowait()
                    self.frames_dropped += 1
                except queue.Empty:
                    pass

    def session_close(self) -> None:
        """
        Force the connection closed (used by server_stop)

        Shutting the socket down unblocks a write that is in progress; the
        send thread then releases everything and deregisters.
        """
        if self._closed.is_set():
            return
        self._closed.set()
        self.is_alive = False
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Shutdown of {self.address_text} failed: {e}")
        self.socket.close()
        try:
            self._frames.put_nowait(None)
        except queue.Full:
            pass

    def session_join(self, timeout: float) -> None:
        """
        Wait for the send thread to finish

        Args:
            timeout: Maximum seconds to wait
        """
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _peer_check(self) -> None:
        """Drain request bytes; raise if the viewer hung up"""
        data = request_read(self.socket, settings.REQUEST_READ_SIZE)
        if data is None:
            raise ClientIOError(self.address, "connection closed by client")
        if data:
            request_line = data.split(b"\r\n", 1)[0].decode("latin-1")
            logger.debug(f"Request from {self.address_text}: {request_line}")

    def _session_run(self) -> None:
        """Send loop: header once, then one multipart chunk per frame"""
        writer: Optional[MultipartWriter] = None
        try:
            writer = MultipartWriter(self.socket.makefile("wb"), self.boundary)
            writer.header_write()
            while not self._closed.is_set():
                try:
                    encoded = self._frames.get(timeout=settings.SESSION_POLL_SEC)
                except queue.Empty:
                    self._peer_check()
                    continue
                if encoded is None:
                    break
                self._peer_check()
                writer.frame_write(encoded.data)
                self.frames_sent += 1
        except ClientIOError as e:
            if not self._closed.is_set():
                self._log_write(str(e), logging.WARNING)
        except (OSError, ValueError) as e:
            if not self._closed.is_set():
                self._log_write(str(ClientIOError(self.address, str(e))), logging.WARNING)
        finally:
            self.is_alive = False
            self._closed.set()
            self._on_close(self)
            if writer is not None:
                writer.stream_close()
            try:
                self.socket.close()
            except OSError as e:
                logger.debug(f"Error closing connection to {self.address_text}: {e}")
            logger.debug(
                f"Session {self.address_text} ended after {self.frames_sent} frames "
                f"({self.frames_dropped} dropped)"
            )
