"""
=============================================================================
REQUEST LOGGING MIDDLEWARE
=============================================================================

Writes one line per request to the INFO log:

    INFO\t2026/10/18 09:14:02 127.0.0.1 - HTTP/1.1 GET /snippet/view?id=7 200 1289B 3.12ms
                              ─────────   ──────── ─── ────────────────── ─── ───── ──────
                              client ip   version  method      uri        status size  time

Failures are NOT logged here: a server error was already written to the
ERROR log, once, by the ErrorReporter. This line only records that the
request happened and how it was answered.

=============================================================================
"""

import logging
import time
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


@dataclass
class RequestLog:
    """One access-log entry."""

    client_ip: str
    version: str
    method: str
    uri: str
    status_code: int
    content_length: int
    duration_ms: float

    def to_text(self) -> str:
        return (
            f"{self.client_ip or '-'} - {self.version} {self.method} {self.uri} "
            f"{self.status_code} {self.content_length}B {self.duration_ms:.2f}ms"
        )


class RequestLogMiddleware(Middleware):
    """Access logging to the application's INFO log."""

    def __init__(self, info_log: logging.Logger):
        self.info_log = info_log

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()
        response = next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        entry = RequestLog(
            client_ip=request.client_address[0],
            version=request.version,
            method=request.method,
            uri=request.uri,
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
        )
        self.info_log.info("%s", entry.to_text())
        return response
