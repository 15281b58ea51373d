"""HTTP multipart/x-mixed-replace framing for the JPEG stream"""

import logging
import select
import socket
from typing import BinaryIO, Optional

from deskview.common.config import DEFAULT_BOUNDARY, boundary_validate

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
CONTENT_TYPE_JPEG = "image/jpeg"


def responseHeader_build(boundary: str) -> bytes:
    """
    Build the HTTP response header that opens a stream

    Args:
        boundary: Multipart boundary token

    Returns:
        Status line, content-type header and the terminating blank line
    """
    return (
        "HTTP/1.1 200 OK\r\n"
        f"Content-Type: multipart/x-mixed-replace; boundary={boundary}\r\n"
        "\r\n"
    ).encode("ascii")


def frameChunk_build(boundary: str, data: bytes) -> bytes:
    """
    Build one boundary-delimited part carrying a JPEG image

    Args:
        boundary: Multipart boundary token
        data: Encoded image bytes

    Returns:
        Complete chunk: blank line, boundary, part headers, payload, CRLF
    """
    part_header = (
        "\r\n"
        f"{boundary}\r\n"
        f"Content-Type: {CONTENT_TYPE_JPEG}\r\n"
        f"Content-Length: {len(data)}\r\n"
        "\r\n"
    ).encode("ascii")
    return b"".join((part_header, data, CRLF))


def request_read(sock: socket.socket, length: int) -> Optional[bytes]:
    """
    Read whatever request bytes a client has already sent, without blocking

    Viewers send an HTTP GET before reading the stream; its content is not
    interpreted, only drained so the kernel buffer does not fill up.

    Args:
        sock: Client socket
        length: Maximum number of bytes to read

    Returns:
        Bytes read (empty if nothing was pending), or None if the peer closed
        the connection

    Raises:
        OSError: If the socket is broken
    """
    readable, _, _ = select.select([sock], [], [], 0)
    if not readable:
        return b""
    data = sock.recv(length)
    if not data:
        return None
    return data


class MultipartWriter:
    """Writes the response header and JPEG parts onto one client stream"""

    def __init__(self, stream: BinaryIO, boundary: str = DEFAULT_BOUNDARY) -> None:
        """
        Initialize multipart writer

        Args:
            stream: Writable binary stream (socket file or any buffer)
            boundary: Multipart boundary token
        """
        self.stream: BinaryIO = stream
        self.boundary: str = boundary_validate(boundary)
        self.header_written: bool = False
        self.frames_written: int = 0

    def header_write(self) -> None:
        """
        Write the HTTP response header; allowed exactly once

        Raises:
            RuntimeError: If the header was already written
            OSError: If the stream write fails
        """
        if self.header_written:
            raise RuntimeError("Response header already written")
        self.stream.write(responseHeader_build(self.boundary))
        self.stream.flush()
        self.header_written = True

    def frame_write(self, data: bytes) -> None:
        """
        Write one JPEG part and flush

        Args:
            data: Encoded image bytes

        Raises:
            RuntimeError: If called before header_write()
            OSError: If the stream write fails
        """
        if not self.header_written:
            raise RuntimeError("Response header must be written before any frame")
        self.stream.write(frameChunk_build(self.boundary, data))
        self.stream.flush()
        self.frames_written += 1

    def stream_close(self) -> None:
        """Close the underlying stream"""
        try:
            self.stream.close()
        except OSError as e:
            logger.debug(f"Error closing multipart stream: {e}")
