"""
=============================================================================
SNIPPETBOX CLI ENTRY POINT
=============================================================================

    python -m snippetbox                         # listen on :4000
    python -m snippetbox --addr 127.0.0.1:8000
    SNIPPETBOX_ADDR=:9000 python -m snippetbox
    python -m snippetbox --no-template-cache     # re-read templates per request
    python -m snippetbox --in-memory-store       # keep created snippets in memory

Precedence: flags, then SNIPPETBOX_* environment variables, then the
ServerConfig defaults.

    kill -HUP <pid>     re-read the template tree without restarting

=============================================================================
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from . import __version__
from .app import Application
from .config import ServerConfig
from .errors import TemplateBuildError
from .logs import new_loggers
from .models import MemorySnippetStore
from .server import SnippetServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snippetbox",
        description="Serve the snippetbox web application.",
    )

    parser.add_argument(
        "--addr",
        default=None,
        help="HTTP network address, host:port (default: $SNIPPETBOX_ADDR or :4000)",
    )
    parser.add_argument(
        "--static-dir",
        default=None,
        help="Directory served under /static/",
    )
    parser.add_argument(
        "--template-dir",
        default=None,
        help="Template root holding base.html, partials/ and pages/",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum number of worker threads",
    )
    parser.add_argument(
        "--no-template-cache",
        action="store_true",
        help="Re-read templates on every request",
    )
    parser.add_argument(
        "--in-memory-store",
        action="store_true",
        help="Keep snippets in memory (default: no store, placeholder pages)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"snippetbox {__version__}",
    )
    return parser


def load_config(args: argparse.Namespace, environ: Optional[dict] = None) -> ServerConfig:
    """Apply command-line flags on top of the environment."""
    config = ServerConfig.from_env(environ)

    if args.addr is not None:
        config.addr = args.addr
    if args.static_dir is not None:
        config.static_dir = args.static_dir
    if args.template_dir is not None:
        config.template_dir = args.template_dir
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
    if args.no_template_cache:
        config.cache_templates = False
    if args.in_memory_store:
        config.in_memory_store = True

    return config


def create_app(config: ServerConfig) -> Application:
    """
    The Application main() serves. No snippet store unless
    config.in_memory_store is set.

    Raises:
        TemplateBuildError: With template caching on, a page failed to build.
    """
    snippets = MemorySnippetStore() if config.in_memory_store else None
    return Application.from_config(config, snippets=snippets)


def _install_reload(server: SnippetServer) -> None:
    if not hasattr(signal, "SIGHUP") or threading.current_thread() is not threading.main_thread():
        return

    def reload_handler(signum, frame):
        try:
            server.reload_templates()
        except TemplateBuildError as e:
            server.app.error_log.error("template reload failed: %s", e)

    signal.signal(signal.SIGHUP, reload_handler)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args)

    try:
        config.validate()
    except ValueError as e:
        _, error_log = new_loggers()
        error_log.error("invalid configuration: %s", e)
        return 2

    try:
        app = create_app(config)
    except TemplateBuildError as e:
        _, error_log = new_loggers()
        error_log.error("%s", e)
        return 1

    server = SnippetServer(app)
    _install_reload(server)

    try:
        server.run()
    except OSError as e:
        app.error_log.error("%s", e)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
