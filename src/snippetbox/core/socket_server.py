"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. It knows nothing about
HTTP: every accepted socket is wrapped in a Connection and handed to a
callback.

    start(on_connection)
        │
        ├──► bind(host, port)  +  listen(backlog)
        ├──► SIGINT / SIGTERM → shutdown()      (main thread only)
        │
        └──► while running:
                 accept()  ──(1s timeout, re-check running)──┐
                    │                                        │
                    ▼                                        │
                 on_connection(Connection(...)) ─────────────┘

Signal handlers can only be installed from the main thread, so a server
started from any other thread (tests, embedding) skips that step and is
stopped by calling shutdown() directly.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Accepts TCP connections for one ServerConfig.

        server = SocketServer(config)
        server.start(handle_connection)   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: Dict[int, object] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). With port 0 in the config this is the port
        the OS picked, once the server is listening.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return host, port
        return self.config.host, self.config.port

    def _create_socket(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    # ─────────────────────────────────────────────────────────────────────
    # Signals
    # ─────────────────────────────────────────────────────────────────────

    def _setup_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info("received %s, shutting down", signal.Signals(signum).name)
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def start(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Bind, listen and run the accept loop until shutdown().

        Raises:
            OSError: The address could not be bound.
        """
        self._socket = self._create_socket()
        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError:
            self._socket.close()
            self._socket = None
            raise

        self._running = True
        self._setup_signals()
        self._ready.set()
        logger.debug("listening on %s:%d", *self.address)

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]) -> None:
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error("accept failed: %s", e)
                break

            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self) -> None:
        """Stop the accept loop. Safe from any thread and idempotent."""
        self._running = False

    def _cleanup(self) -> None:
        self._running = False
        self._restore_signals()
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        self._ready.clear()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready.wait(timeout)
