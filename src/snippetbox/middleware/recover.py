"""
Last line of defence around the handlers.

An exception that escapes a handler is answered here instead of tearing
down the worker's connection loop:

    HTTPError, status < 500 → client_error with its status and headers
    HTTPError, status >= 500, or anything else
                            → server_error (logged once) + Connection: close

Handlers that report their own failures never reach this code.
"""

from .base import Middleware, NextHandler
from ..errors import HTTPError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..reporting import ErrorReporter


class RecoverMiddleware(Middleware):
    def __init__(self, errors: ErrorReporter):
        self.errors = errors

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            return next(request)
        except HTTPError as e:
            if e.status_code < 500:
                return self.errors.http_error(request, e)
            failure = e
        except Exception as e:
            failure = e

        response = self.errors.server_error(request, failure)
        # Whatever state the handler left behind, don't reuse the connection.
        response.set_header("Connection", "close")
        return response
