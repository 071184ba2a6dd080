"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SocketServer   listening socket, accept loop, SIGINT/SIGTERM      │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ new Connection
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  ThreadPool     bounded queue + worker threads                      │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ worker runs the keep-alive loop
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  Connection     buffered request reads, sendall, graceful close     │
    └─────────────────────────────────────────────────────────────────────┘

None of these know about routes, templates or snippets; that lives in
snippetbox.server and above.

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ThreadPool",
]
