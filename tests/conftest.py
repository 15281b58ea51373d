"""Pytest configuration and shared fixtures for deskview tests

This module provides common fixtures and test utilities used across
unit and integration tests.
"""

import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable, Generator, Iterator

import pytest

from deskview.common.config import ServerConfig
from deskview.common.settings import settings
from deskview.server.network import StreamingServer


@dataclass
class StreamChunk:
    """One parsed multipart part"""
    raw_prefix: bytes
    headers: dict[str, str]
    payload: bytes


class MultipartStreamReader:
    """Minimal viewer: parses the header and chunks written by the server"""

    def __init__(self, sock: socket.socket, boundary: str) -> None:
        self.socket = sock
        self.boundary = boundary
        self.file = sock.makefile("rb")

    def header_read(self) -> bytes:
        """Read the HTTP response header up to and including the blank line"""
        lines = []
        while True:
            line = self.file.readline()
            if not line:
                raise ConnectionError("stream closed while reading header")
            lines.append(line)
            if line == b"\r\n":
                return b"".join(lines)

    def chunk_read(self) -> StreamChunk:
        """Read one boundary-delimited part"""
        blank = self.file.readline()
        boundary_line = self.file.readline()
        if not blank or not boundary_line:
            raise ConnectionError("stream closed while reading chunk")
        prefix = [blank, boundary_line]
        headers: dict[str, str] = {}
        while True:
            line = self.file.readline()
            if not line:
                raise ConnectionError("stream closed while reading part headers")
            prefix.append(line)
            if line == b"\r\n":
                break
            name, value = line.decode("ascii").rstrip("\r\n").split(":", 1)
            headers[name.strip()] = value.strip()
        payload = self.file.read(int(headers["Content-Length"]))
        trailer = self.file.read(2)
        assert trailer == b"\r\n"
        return StreamChunk(raw_prefix=b"".join(prefix), headers=headers, payload=payload)

    def close(self) -> None:
        self.file.close()
        self.socket.close()


def _wait_until(predicate: Callable[[], bool], timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or timeout expires"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Polling helper for asserting on state changed by server threads"""
    return _wait_until


@pytest.fixture
def small_config() -> ServerConfig:
    """Small, fast stream bound to localhost on an ephemeral port"""
    return ServerConfig(
        width=160,
        height=120,
        frame_interval_ms=10,
        port=0,
        host="127.0.0.1",
        client_queue_size=64,
    )


@pytest.fixture
def server_factory() -> Iterator[Callable[..., StreamingServer]]:
    """Create streaming servers that are always stopped at teardown"""
    servers: list[StreamingServer] = []

    def factory(*args, **kwargs) -> StreamingServer:
        server = StreamingServer(*args, **kwargs)
        servers.append(server)
        return server

    yield factory
    for server in servers:
        server.server_stop()


@pytest.fixture
def stream_client() -> Iterator[Callable[..., MultipartStreamReader]]:
    """Connect viewers to a local port; all are closed at teardown"""
    readers: list[MultipartStreamReader] = []

    def connect(port: int, boundary: str = settings.DEFAULT_BOUNDARY) -> MultipartStreamReader:
        sock = socket.create_connection(("127.0.0.1", port), timeout=5.0)
        reader = MultipartStreamReader(sock, boundary)
        readers.append(reader)
        return reader

    yield connect
    for reader in readers:
        try:
            reader.close()
        except OSError:
            pass


@pytest.fixture
def tcp_pair() -> Iterator[tuple[socket.socket, socket.socket, tuple[str, int]]]:
    """Connected (server_side, client_side, client_address) TCP sockets"""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    client_side = socket.create_connection(listener.getsockname(), timeout=5.0)
    server_side, address = listener.accept()
    listener.close()
    yield server_side, client_side, address
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def reset_settings() -> Generator[None, None, None]:
    """Reset settings singleton between tests

    This fixture ensures each test gets a fresh Settings instance.
    """
    settings._config = None
    yield
    settings._config = None


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Setup logging for tests"""
    caplog.set_level(logging.DEBUG)
