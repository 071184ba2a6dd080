"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses.

    HTTP/1.1 200 OK\r\n                         ← status line
    Content-Type: text/html; charset=utf-8\r\n
    Content-Length: 1289\r\n                    ← added by to_bytes()
    Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n     ← added by to_bytes()
    Server: snippetbox\r\n                      ← added by to_bytes()
    \r\n
    <!doctype html>...                          ← body

Handlers either construct responses with the fluent ResponseBuilder or
with one of the one-liners at the bottom of this module:

    return ok("Create a new snippet...")
    return created("Created snippet 3\n", location="/snippet/view?id=3")
    return ResponseBuilder().status(HTTPStatus.OK).html(page).build()

Error responses are NOT built here. Every 4xx/5xx goes through the
ErrorReporter so that there is a single place deciding what the client
sees and what gets logged.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Union

from .status_codes import HTTPStatus, status_text


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized onto a socket.

    `status` is an int so that any status code can be expressed; the
    HTTPStatus members are ints too.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """"HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {status_text(self.status)}".rstrip()

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "snippetbox") -> bytes:
        """
        Serialize the response for socket.sendall().

        Content-Length, Date and Server are added when the handler did not
        set them.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .header("Location", "/snippet/view?id=3")
            .text("Created snippet 3\\n")
            .build())

    Every method but build() returns self.
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: Union[str, bytes]) -> "ResponseBuilder":
        """HTML body; rendered templates arrive as bytes already."""
        self._body = html.encode("utf-8") if isinstance(html, str) else html
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self

    def redirect(self, location: str, status: int = HTTPStatus.SEE_OTHER) -> "ResponseBuilder":
        """
        Redirect to `location`.

        303 See Other is the default: it is what a browser expects after a
        successful form POST.
        """
        self._status = status
        self._headers["Location"] = location
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an IMF-fixdate, always in GMT.

        Sun, 18 Oct 2026 12:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    dt = dt.astimezone(timezone.utc)
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes] = "", content_type: Optional[str] = None) -> HTTPResponse:
    """200 OK with a text body (or raw bytes plus an explicit content type)."""
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, str):
        builder.text(body, content_type or "text/plain; charset=utf-8")
    else:
        builder.body(body)
        if content_type:
            builder.content_type(content_type)
    return builder.build()


def html(page: Union[str, bytes], status: int = HTTPStatus.OK) -> HTTPResponse:
    """A rendered HTML page."""
    return ResponseBuilder().status(status).html(page).build()


def created(body: str = "", location: Optional[str] = None) -> HTTPResponse:
    """201 Created, with a Location header pointing at the new resource."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED)
    if body:
        builder.text(body)
    if location:
        builder.header("Location", location)
    return builder.build()


def redirect(location: str, status: int = HTTPStatus.SEE_OTHER) -> HTTPResponse:
    return ResponseBuilder().redirect(location, status).build()


def error_text(status: int, headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
    """
    Plain-text error response whose body is the standard reason phrase.

        404 → "Not Found\\n"

    Used by the ErrorReporter; handlers should call the reporter instead.
    """
    return (ResponseBuilder()
        .status(status)
        .text(status_text(status) + "\n")
        .header("X-Content-Type-Options", "nosniff")
        .headers(headers or {})
        .build())
