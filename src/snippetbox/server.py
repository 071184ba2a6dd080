"""
=============================================================================
SNIPPETBOX HTTP SERVER
=============================================================================

    SocketServer.accept ──► ThreadPool.submit ──► _process_connection
                                                        │
                          ┌─────────────────────────────┘
                          ▼
              ┌───────────────────────┐
              │ Connection.read_request│◄──────────────────┐
              └──────────┬────────────┘                    │
                         ▼                                 │ keep-alive
              ┌───────────────────────┐                    │
              │ RequestParser.parse    │── 4xx/5xx ──► reply, close
              └──────────┬────────────┘                    │
                         ▼                                 │
              ┌───────────────────────┐                    │
              │ handler(request)       │  middleware + router
              └──────────┬────────────┘                    │
                         ▼                                 │
              ┌───────────────────────┐                    │
              │ Connection.send        │────────────────────┘
              └───────────────────────┘

=============================================================================
PUBLISHING A NEW APPLICATION
=============================================================================

The server holds ONE reference to an (Application, handler) pair. Each
request reads that reference once, before it is dispatched, and uses the
pair it got until the response is written.

    server.publish(new_app)
        1. build_handler(new_app)                  (may raise; nothing changes)
        2. self._current = (new_app, handler)      (single assignment)

A request therefore sees either the old pair or the new one, never a mix.
reload_templates() is publish() with a freshly read template tree; a tree
that fails to build leaves the running Application in place.

Listener settings (addr, backlog, workers) are read once in run(); a
published Application does not rebind the socket.

=============================================================================
"""

import logging
from typing import Dict, Optional, Tuple

from .app import Application
from .core import Connection, ConnectionState, SocketServer, ThreadPool
from .errors import HTTPParseError
from .http.request import RequestParser
from .http.response import error_text
from .http.status_codes import HTTPStatus
from .middleware import NextHandler
from .routes import build_handler


logger = logging.getLogger(__name__)


class SnippetServer:
    """
    Serves one Application (replaceable at runtime with publish()).

        app = Application.from_config(config, snippets=MemorySnippetStore())
        server = SnippetServer(app)
        server.run()          # blocks until SIGINT/SIGTERM or shutdown()
    """

    def __init__(self, app: Application):
        self._current: Tuple[Application, NextHandler] = (app, build_handler(app))

        config = app.config
        self._socket_server = SocketServer(config)
        self._thread_pool = ThreadPool(
            min_workers=config.min_workers,
            max_workers=config.max_workers,
            queue_size=config.queue_size,
        )
        self._parser = RequestParser(max_request_size=config.max_request_size)

    # =========================================================================
    # APPLICATION
    # =========================================================================

    @property
    def app(self) -> Application:
        return self._current[0]

    def publish(self, app: Application) -> None:
        """
        Make `app` the Application for every request dispatched from now on.
        In-flight requests finish with the Application they started with.
        """
        handler = build_handler(app)
        self._current = (app, handler)
        app.info_log.info("Published new application context")

    def reload_templates(self) -> Application:
        """
        Re-read the template tree and publish the result.

        Raises:
            TemplateBuildError: The new tree is broken. The running
                Application stays in place.
        """
        app = self.app.reload_templates()
        self.publish(app)
        return app

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def run(self) -> None:
        """
        Listen on config.addr and serve until shutdown().

        Raises:
            OSError: The listen address could not be bound.
        """
        app = self.app
        self._thread_pool.start()
        app.info_log.info("Starting server on %s", app.config.addr)
        try:
            self._socket_server.start(self._handle_connection)
        finally:
            self._thread_pool.shutdown(wait=True, timeout=app.config.timeout)
            self.app.info_log.info("Server stopped")

    def shutdown(self) -> None:
        """Stop accepting connections; run() returns once workers drain."""
        self._socket_server.shutdown()

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        if self._thread_pool.submit(self._process_connection, args=(conn,)):
            return

        logger.warning("[%s] worker queue full, rejecting %s", conn.id, conn.client_ip)
        response = error_text(HTTPStatus.SERVICE_UNAVAILABLE, {"Connection": "close"})
        conn.send_response(response.to_bytes(self.app.config.server_name))
        conn.close()

    def _process_connection(self, conn: Connection) -> None:
        """The keep-alive loop for one connection (runs on a worker)."""
        with conn:
            while self._socket_server.is_running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._reject(conn, HTTPStatus.REQUEST_TIMEOUT)
                    break
                except HTTPParseError as e:
                    self._reject(conn, e.status_code, e.headers)
                    break

                if raw_request is None:
                    break

                # One snapshot per request; publish() may swap it meanwhile.
                app, handler = self._current
                config = app.config

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    self._reject(conn, e.status_code, e.headers)
                    break

                conn.state = ConnectionState.PROCESSING
                try:
                    response = handler(request)
                except Exception as e:
                    response = app.errors.server_error(request, e)
                    response.headers["Connection"] = "close"

                keep_alive = (
                    config.keep_alive
                    and request.is_keep_alive
                    and response.get_header("Connection").lower() != "close"
                )
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault("Keep-Alive", f"timeout={int(config.keep_alive_timeout)}")
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(config.server_name)):
                    break
                if not keep_alive:
                    break
                conn.set_keep_alive()

    def _reject(self, conn: Connection, status: int, headers: Optional[Dict[str, str]] = None) -> None:
        """Answer a request that never reached a handler, then close."""
        app = self.app
        response = app.errors.client_error(None, status, headers=headers)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(app.config.server_name))
