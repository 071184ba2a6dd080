"""
=============================================================================
CLIENT CONNECTION
=============================================================================

A Connection wraps one accepted client socket and turns the TCP byte
stream back into whole HTTP requests.

    recv() chunks:   "GET /snip"  "pet/view?id=7 HTTP/1.1\\r\\nHo"  "st: x\\r\\n\\r\\n"
                          │                    │                         │
                          └────────────────────┴──── _buffer ────────────┘
                                                        │
                                     read_request() ────┘
                                          │
                                          ▼
                   b"GET /snippet/view?id=7 HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"

Bytes after the end of one request stay in the buffer for the next call,
so pipelined requests are served in order.

=============================================================================
LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ─┐
               ▲                                               │
               └───────────────────────────────────────────────┘
                                     │
                                     ▼
                               CLOSING ──► CLOSED

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import HTTPParseError
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client connection, owned by exactly one worker thread.

    Attributes:
        socket: The accepted client socket.
        address: Peer (ip, port).
        id: Short identifier used in debug logs.
        state: Current ConnectionState.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)
    last_activity: float = field(default_factory=time.monotonic)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete request: headers, then Content-Length body bytes.

        The first request waits up to `timeout`; later requests on a
        keep-alive connection wait only `keep_alive_timeout`.

        Returns:
            The request bytes, or None when the peer closed the connection
            or an idle keep-alive connection timed out.

        Raises:
            TimeoutError: The first request did not arrive in time.
            HTTPParseError: 413 when the request outgrows max_request_size.
        """
        self.state = ConnectionState.READING
        self.last_activity = time.monotonic()

        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            # ─────────────────────────────────────────────────────────────
            # Headers: everything up to the blank line
            # ─────────────────────────────────────────────────────────────
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            # ─────────────────────────────────────────────────────────────
            # Body: exactly Content-Length bytes
            # ─────────────────────────────────────────────────────────────
            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break
                self._append(chunk)

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.last_activity = time.monotonic()
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug("[%s] keep-alive timeout", self.id)
                return None
            raise TimeoutError("request read timeout") from None

        finally:
            self.socket.settimeout(self.timeout)

    def _append(self, chunk: bytes) -> None:
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: more than {self.max_request_size} bytes",
                status_code=HTTPStatus.PAYLOAD_TOO_LARGE,
            )

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        # The parser validates Content-Length properly; here a bad value just
        # means "no body" so the parser gets to see the request and reject it.
        for line in headers.decode("latin-1").split("\r\n")[1:]:
            name, sep, value = line.partition(":")
            if sep and name.strip().lower() == "content-length":
                value = value.strip()
                return int(value) if value.isdigit() else 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send `data` with sendall().

        Returns:
            False when the peer has gone away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.debug("[%s] send failed: %s", self.id, e)
            return False
        self.last_activity = time.monotonic()
        return True

    def set_keep_alive(self) -> None:
        self.state = ConnectionState.KEEP_ALIVE

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Shut down the write side, drain what the peer still sends, close.
        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug("[%s] closed after %d requests", self.id, self.requests_handled)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
