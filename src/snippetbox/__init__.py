"""
=============================================================================
SNIPPETBOX
=============================================================================

A small pastebin-style web application served by a threaded HTTP/1.1
server built on raw sockets.

    ┌─────────────┐    ┌──────────────┐    ┌─────────────┐    ┌──────────┐
    │ SocketServer│───►│  ThreadPool  │───►│ middleware  │───►│  Router  │
    └─────────────┘    └──────────────┘    └─────────────┘    └────┬─────┘
                                                                   │
                          ┌──────────────────┬─────────────────────┤
                          ▼                  ▼                     ▼
                        home           snippet_view          snippet_create
                          │                  │
                          └──────► TemplateCache (Jinja2) ◄────────┘

Every handler reads one immutable Application (config, loggers,
templates, snippet store, error reporter). Reloading means publishing a
new Application to the server.

=============================================================================
QUICK START
=============================================================================

    from snippetbox import Application, ServerConfig, SnippetServer
    from snippetbox.models import MemorySnippetStore

    app = Application.from_config(ServerConfig(addr=":4000"), snippets=MemorySnippetStore())
    SnippetServer(app).run()

=============================================================================
"""

__version__ = "1.0.0"

from .app import Application
from .config import ServerConfig
from .server import SnippetServer

__all__ = ["Application", "ServerConfig", "SnippetServer", "__version__"]
