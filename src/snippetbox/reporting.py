"""
=============================================================================
ERROR REPORTER
=============================================================================

The single place that turns a failure into an HTTP response.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      FAILURE REPORTING                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   handler                                                           │
    │     │                                                               │
    │     ├── server_error(request, err)                                  │
    │     │      │                                                        │
    │     │      ├──► error_log: ERROR\t... snippets.py:58: GET / ...     │
    │     │      │               Traceback (most recent call last): ...   │
    │     │      │                                                        │
    │     │      └──► 500 "Internal Server Error\n"                       │
    │     │                                                               │
    │     ├── client_error(request, 400)  ──► 400 "Bad Request\n"         │
    │     │                                   (nothing logged)            │
    │     │                                                               │
    │     └── not_found(request)          ──► 404 "Not Found\n"           │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ORIGIN OF A SERVER ERROR
=============================================================================

The ERROR line must point at the code that REPORTED the failure, not at
the reporter and not at the template engine three frames deeper:

    frame depth 1   reporting.py   server_error()     ← the reporter
    frame depth 2   snippets.py    home()             ← default origin
    frame depth 3   middleware...  __call__()

The frame at that depth gives DiagnosticRecord.origin, which the error log
prints in place of the logging call site. The depth defaults to
ServerConfig.error_log_depth and may be raised per call by helpers that
wrap the reporter.

=============================================================================
"""

import logging
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from types import FrameType
from typing import Dict, List, Optional

from .errors import HTTPError
from .http.request import HTTPRequest
from .http.response import HTTPResponse, error_text
from .http.status_codes import HTTPStatus


@dataclass(frozen=True)
class DiagnosticRecord:
    """
    What the error log receives for one server error.

    Attributes:
        message:     "<METHOD> <uri>: <error>"
        origin:      "<file>:<line>" of the reporting call site
        stack_trace: Formatted traceback of the error
    """

    message: str
    origin: str
    stack_trace: str

    def render(self) -> str:
        return f"{self.message}\n{self.stack_trace.rstrip()}"


def _caller(depth: int) -> FrameType:
    """Frame `depth` levels above the function that called _caller."""
    frame = sys._getframe(1)
    for _ in range(depth - 1):
        if frame.f_back is None:
            break
        frame = frame.f_back
    return frame


def _format_trace(err: BaseException, frame: FrameType) -> str:
    if err.__traceback__ is not None:
        return "".join(traceback.format_exception(err))
    # Never raised: show where it was reported from instead.
    stack = "".join(traceback.format_stack(frame))
    return stack + "".join(traceback.format_exception_only(err))


class ErrorReporter:
    """
    Maps failures to responses and writes server errors to the error log.

    The reporter holds no mutable state; one instance is shared by every
    worker thread through the Application.
    """

    def __init__(self, error_log: logging.Logger, depth: int = 2):
        self.error_log = error_log
        self.depth = depth

    def server_error(
        self,
        request: Optional[HTTPRequest],
        err: BaseException,
        *,
        depth: Optional[int] = None,
    ) -> HTTPResponse:
        """
        Log `err` once at ERROR level and answer 500 Internal Server Error.

        Args:
            request: The request being served, used for context in the log.
            err: The failure.
            depth: Origin frame depth for this call (default self.depth).

        Returns:
            A 500 response that reveals nothing about `err`.
        """
        frame = _caller(depth if depth is not None else self.depth)
        record = self.diagnose(request, err, frame)
        self.error_log.error("%s", record.render(), extra={"origin": record.origin})
        return error_text(HTTPStatus.INTERNAL_SERVER_ERROR)

    def diagnose(
        self,
        request: Optional[HTTPRequest],
        err: BaseException,
        frame: FrameType,
    ) -> DiagnosticRecord:
        """Build the DiagnosticRecord for `err` reported from `frame`."""
        detail = str(err) or type(err).__name__
        message = f"{request.method} {request.uri}: {detail}" if request else detail
        origin = f"{Path(frame.f_code.co_filename).name}:{frame.f_lineno}"
        return DiagnosticRecord(
            message=message,
            origin=origin,
            stack_trace=_format_trace(err, frame),
        )

    def client_error(
        self,
        request: Optional[HTTPRequest],
        status: int,
        *,
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPResponse:
        """
        Answer `status` with its standard reason phrase. Nothing is logged.
        """
        return error_text(status, headers)

    def not_found(self, request: Optional[HTTPRequest]) -> HTTPResponse:
        return self.client_error(request, HTTPStatus.NOT_FOUND)

    def method_not_allowed(self, request: Optional[HTTPRequest], allowed: List[str]) -> HTTPResponse:
        """405 with an Allow header listing `allowed`."""
        return self.client_error(
            request,
            HTTPStatus.METHOD_NOT_ALLOWED,
            headers={"Allow": ", ".join(allowed)},
        )

    def http_error(self, request: Optional[HTTPRequest], err: HTTPError) -> HTTPResponse:
        """Client error response for an HTTPError raised by a handler or the parser."""
        return self.client_error(request, err.status_code, headers=err.headers)
