"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves CSS, images and scripts from ServerConfig.static_dir.

    GET /static/css/main.css
          │
          ▼  strip_prefix("/static")
    /css/main.css
          │
          ▼  StaticFileHandler.handle
    <static_dir>/css/main.css

=============================================================================
WHAT IS NOT SERVED
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  /static/../config.py      → 404   (rejected by the router)         │
    │  /static/css/              → 404   (directory without index.html)   │
    │  /static/link-to-etc       → 404   (resolves outside static_dir)    │
    │  /static/missing.png       → 404                                    │
    └─────────────────────────────────────────────────────────────────────┘

Directories are never listed: a directory either has an index.html or it
does not exist as far as clients can tell.

=============================================================================
"""

import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, format_http_date
from ..http.router import Handler
from ..http.status_codes import HTTPStatus
from ..reporting import ErrorReporter


logger = logging.getLogger(__name__)


def strip_prefix(prefix: str, handler: Handler) -> Handler:
    """
    Wrap `handler` so it sees the request path without `prefix`.

        strip_prefix("/static", files.handle)
        /static/css/main.css → handler sees /css/main.css
    """
    prefix = prefix.rstrip("/")

    def stripped(request: HTTPRequest) -> HTTPResponse:
        if request.path.startswith(prefix):
            request.path = request.path[len(prefix):] or "/"
        return handler(request)

    return stripped


class StaticFileHandler:
    """
    Serves files below `root_dir`.

    =========================================================================
    CACHING
    =========================================================================

    Each file gets an ETag built from its mtime and size. A request whose
    If-None-Match equals the ETag gets 304 Not Modified with no body.

    =========================================================================
    """

    def __init__(
        self,
        root_dir: str,
        errors: ErrorReporter,
        index_file: str = "index.html",
        cache_max_age: int = 3600,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.errors = errors
        self.index_file = index_file
        self.cache_max_age = cache_max_age

        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Serve the file named by request.path (prefix already stripped).
        """
        relative = request.path.lstrip("/")
        full_path = (self.root_dir / relative).resolve()

        # ─────────────────────────────────────────────────────────────────
        # Symlinks may still point outside the root
        # ─────────────────────────────────────────────────────────────────
        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning("Static path resolves outside root: %s", relative)
            return self.errors.not_found(request)

        if full_path.is_dir():
            index_path = full_path / self.index_file
            if not index_path.is_file():
                return self.errors.not_found(request)
            full_path = index_path

        if not full_path.is_file():
            return self.errors.not_found(request)

        try:
            return self._serve_file(full_path, request)
        except PermissionError:
            return self.errors.client_error(request, HTTPStatus.FORBIDDEN)
        except OSError as e:
            return self.errors.server_error(request, e)

    def _serve_file(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        stat = path.stat()
        etag = f'"{int(stat.st_mtime)}-{stat.st_size}"'

        if request.get_header("If-None-Match") == etag:
            return (ResponseBuilder()
                .status(HTTPStatus.NOT_MODIFIED)
                .header("ETag", etag)
                .build())

        content = path.read_bytes()
        content_type, _ = mimetypes.guess_type(path.name)
        if content_type is None:
            content_type = "application/octet-stream"
        elif content_type.startswith("text/") or content_type == "application/javascript":
            content_type += "; charset=utf-8"

        mtime = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Content-Type", content_type)
            .header("ETag", etag)
            .header("Last-Modified", format_http_date(mtime))
            .header("Cache-Control", f"public, max-age={self.cache_max_age}")
            .body(content)
            .build())
