"""
Security headers added to every response.

    Content-Security-Policy   default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com
    Referrer-Policy           origin-when-cross-origin
    X-Content-Type-Options    nosniff
    X-Frame-Options           deny
    X-XSS-Protection          0

Headers a handler already set are left alone.
"""

from typing import Dict, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


DEFAULT_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    ),
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
}


class SecureHeadersMiddleware(Middleware):
    def __init__(self, headers: Optional[Dict[str, str]] = None):
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)
        for name, value in self.headers.items():
            if not response.get_header(name):
                response.set_header(name, value)
        return response
