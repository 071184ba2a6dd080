"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Wire-level HTTP/1.1 for the snippetbox server:

    request.py       raw bytes → HTTPRequest
    response.py      HTTPResponse → raw bytes, ResponseBuilder
    status_codes.py  status codes and reason phrases
    paths.py         path canonicalization
    router.py        (method, path) → handler

=============================================================================
"""

from .request import HTTPRequest, RequestParser
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    html,
    created,
    redirect,
    error_text,
)
from .router import Router, Route, RouteMatch, ANY_METHOD
from .paths import canonicalize
from .status_codes import HTTPStatus, status_text

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "html",
    "created",
    "redirect",
    "error_text",
    "Router",
    "Route",
    "RouteMatch",
    "ANY_METHOD",
    "canonicalize",
    "HTTPStatus",
    "status_text",
]
