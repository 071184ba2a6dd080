"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the snippetbox server lives in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line flags                                             │
    │      └── python -m snippetbox --addr :8000                          │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── SNIPPETBOX_ADDR=:8000 python -m snippetbox                 │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The listen address uses the "host:port" form; an empty host means all
interfaces, so the default ":4000" listens on 0.0.0.0:4000.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


UI_DIR = Path(__file__).parent / "ui"
"""Templates and static assets shipped with the package."""


def parse_addr(addr: str) -> tuple[str, int]:
    """
    Split a listen address into (host, port).

        ":4000"           → ("0.0.0.0", 4000)
        "127.0.0.1:8080"  → ("127.0.0.1", 8080)
        "[::1]:4000"      → ("::1", 4000)

    Raises:
        ValueError: The address has no port or the port is not a number.
    """
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"Invalid address {addr!r}: expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in address {addr!r}") from None
    return host or "0.0.0.0", port_number


@dataclass
class ServerConfig:
    """
    Configuration for the snippetbox server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK      addr, backlog, buffer_size, timeout
    HTTP         keep_alive, keep_alive_timeout, max_request_size
    THREADING    min_workers, max_workers, queue_size
    UI           template_dir, static_dir, cache_templates
    DATA         in_memory_store
    LOGGING      error_log_depth
    IDENTITY     server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    addr: str = ":4000"
    """Listen address, "host:port". An empty host binds every interface."""

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 8192
    """Bytes read from a socket per recv() call."""

    timeout: Optional[float] = 30.0
    """Socket read timeout in seconds."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Allow several requests on one TCP connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a keep-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """
    Largest accepted request, headers plus body. Snippets are short text,
    so 1 MB is generous.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads started with the server."""

    max_workers: int = 16
    """Upper bound on worker threads under load."""

    queue_size: int = 256
    """Accepted connections waiting for a worker. Beyond this: 503."""

    # ─────────────────────────────────────────────────────────────────────
    # UI
    # ─────────────────────────────────────────────────────────────────────

    template_dir: str = str(UI_DIR / "html")
    """
    Root of the template tree:
        base.html, partials/*.html, pages/*.html
    """

    static_dir: Optional[str] = str(UI_DIR / "static")
    """Directory served under /static/. None disables static files."""

    cache_templates: bool = True
    """
    Parse every page once at startup. Turn off in development to re-read
    templates on each request.
    """

    # ─────────────────────────────────────────────────────────────────────
    # DATA
    # ─────────────────────────────────────────────────────────────────────

    in_memory_store: bool = False
    """
    Keep snippets in a MemorySnippetStore (lost on restart). Off by default:
    without a store, view and create answer with placeholder text.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    error_log_depth: int = 2
    """
    Stack depth used to locate the origin of a server error:
    1 is the reporter itself, 2 its caller (the handler).
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "snippetbox"
    """Value of the Server response header."""

    @property
    def host(self) -> str:
        return parse_addr(self.addr)[0]

    @property
    def port(self) -> int:
        return parse_addr(self.addr)[1]

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        SNIPPETBOX_ADDR            Listen address (default: :4000)
        SNIPPETBOX_TEMPLATE_DIR    Template root
        SNIPPETBOX_STATIC_DIR      Static files root
        SNIPPETBOX_WORKERS         Max worker threads (default: 16)
        SNIPPETBOX_TIMEOUT         Socket timeout seconds (default: 30)
        SNIPPETBOX_CACHE_TEMPLATES "0" / "false" to re-read templates
        SNIPPETBOX_STORE           "memory" for the in-memory snippet store
        SNIPPETBOX_ERROR_LOG_DEPTH Origin depth for error logs (default: 2)

        =====================================================================
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            addr=env.get("SNIPPETBOX_ADDR", defaults.addr),
            template_dir=env.get("SNIPPETBOX_TEMPLATE_DIR", defaults.template_dir),
            static_dir=env.get("SNIPPETBOX_STATIC_DIR", defaults.static_dir),
            max_workers=int(env.get("SNIPPETBOX_WORKERS", defaults.max_workers)),
            timeout=float(env.get("SNIPPETBOX_TIMEOUT", defaults.timeout)),
            cache_templates=env.get("SNIPPETBOX_CACHE_TEMPLATES", "1").lower() not in ("0", "false", "no"),
            in_memory_store=env.get("SNIPPETBOX_STORE", "").lower() == "memory",
            error_log_depth=int(env.get("SNIPPETBOX_ERROR_LOG_DEPTH", defaults.error_log_depth)),
        )

    def validate(self) -> None:
        """
        Validate configuration values. Called at startup so that a bad
        value fails immediately instead of on the first request.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        _, port = parse_addr(self.addr)
        if not 0 <= port < 65536:
            raise ValueError(f"Invalid port: {port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.error_log_depth < 1:
            raise ValueError("error_log_depth must be >= 1")

        if not Path(self.template_dir).is_dir():
            raise ValueError(f"template_dir does not exist: {self.template_dir}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. ServerConfig dataclass with documented defaults
# 2. SNIPPETBOX_* environment variables via from_env()
# 3. validate() at startup (fail-fast)
# 4. parse_addr() for "host:port" listen addresses
#
# =============================================================================
