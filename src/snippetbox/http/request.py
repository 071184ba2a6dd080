"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

    ┌─ REQUEST LINE ─────────────────────────────────────────────┐
    │   GET /snippet/view?id=7 HTTP/1.1\r\n                      │
    │   ─┬─ ─────────┬──────── ────┬────                         │
    │  method       uri         version                          │
    │           ┌────┴─────┐                                     │
    │         path       query                                   │
    │   /snippet/view    id=7                                    │
    ├─ HEADERS ──────────────────────────────────────────────────┤
    │   Host: localhost:4000\r\n                                  │
    │   Content-Type: application/x-www-form-urlencoded\r\n      │
    │   Content-Length: 38\r\n                                   │
    ├─ BLANK LINE ───────────────────────────────────────────────┤
    │   \r\n                                                     │
    ├─ BODY ─────────────────────────────────────────────────────┤
    │   title=Hello&content=World&expires=7                      │
    └────────────────────────────────────────────────────────────┘

The parser only checks wire syntax. It percent-decodes the path but does
NOT resolve "." / ".." segments: path canonicalization belongs to the
router, which turns an escape above the root into a 404.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from urllib.parse import parse_qs, urlparse, unquote
import re
import json

from ..errors import HTTPParseError


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    A request is owned by exactly one handler invocation. The router writes
    the canonical path and the path parameters into it before calling the
    handler; nothing else mutates it.

    Attributes:
        method:         GET, POST, ...
        path:           Percent-decoded path without the query string
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Header names lowercased
        query_params:   "?a=1&a=2" → {"a": ["1", "2"]}
        body:           Raw body bytes, exactly Content-Length long
        path_params:    Filled in by the router for subtree routes
        client_address: (ip, port) of the peer
        uri:            The request-target exactly as sent, for logging
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    path_params: Dict[str, str] = field(default_factory=dict)

    client_address: tuple[str, int] = ("", 0)
    uri: str = ""

    _body_json: Optional[Any] = field(default=None, repr=False)
    _form: Optional[Dict[str, list[str]]] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.uri:
            self.uri = self.path

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters: "application/json; charset=utf-8" → "application/json"."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def is_json(self) -> bool:
        return self.content_type == "application/json"

    @property
    def json(self) -> Any:
        """
        The body decoded as JSON, parsed once and cached.

        Raises:
            HTTPParseError: If the body is not valid JSON.
        """
        if self._body_json is None and self.body:
            try:
                self._body_json = json.loads(self.body.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise HTTPParseError(f"Invalid JSON body: {e}")
        return self._body_json

    @property
    def form(self) -> Dict[str, list[str]]:
        """
        The body decoded as application/x-www-form-urlencoded.

        Returns an empty dict for any other content type.

        Raises:
            HTTPParseError: If the body is not valid UTF-8.
        """
        if self._form is None:
            if self.content_type != "application/x-www-form-urlencoded":
                self._form = {}
            else:
                try:
                    text = self.body.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise HTTPParseError(f"Invalid form body: {e}")
                self._form = parse_qs(text, keep_blank_values=True)
        return self._form

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the connection should stay open after this request.

            HTTP/1.1: open unless "Connection: close"
            HTTP/1.0: closed unless "Connection: keep-alive"
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        First value of a query parameter.

            # /snippet/view?id=1&id=2
            request.get_query("id")  # "1"
        """
        values = self.query_params.get(name, [])
        return values[0] if values else default

    def get_form(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a form field, like get_query for the body."""
        values = self.form.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP/1.x request bytes into HTTPRequest objects.

    ==========================================================================
    PARSING STEPS
    ==========================================================================

        1. Size check               → 413 if larger than max_request_size
        2. Split at \\r\\n\\r\\n        → 400 if there is no header terminator
        3. Request line             → 400 malformed, 501 unknown method,
                                      505 unsupported version
        4. Headers                  → names lowercased, repeats joined by ", "
        5. Body                     → exactly Content-Length bytes

    ==========================================================================
    """

    # Methods this server knows about. Anything else is 501 Not Implemented;
    # a known method on the wrong route is the router's 405.
    VALID_METHODS = {
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "HEAD",
        "OPTIONS",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from the socket.
            client_address: Client's (ip, port) tuple for logging.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        # ─────────────────────────────────────────────────────────────────
        # Size limit
        # ─────────────────────────────────────────────────────────────────
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        # ─────────────────────────────────────────────────────────────────
        # Headers / body boundary
        # ─────────────────────────────────────────────────────────────────
        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version, uri = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        # ─────────────────────────────────────────────────────────────────
        # Body: trust Content-Length only
        # ─────────────────────────────────────────────────────────────────
        raw_length = headers.get("content-length", "0")
        if not raw_length.isdigit():
            raise HTTPParseError(f"Invalid Content-Length: {raw_length!r}")
        content_length = int(raw_length)
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )
        body = body[:content_length]

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body,
            client_address=client_address,
            uri=uri,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, Dict[str, list[str]], str, str]:
        """
        Parse "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            Tuple of (method, path, query_params, version, uri)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Unsupported method: {method}", status_code=501)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        # Origin-form only: "/path?query". Absolute-form and "*" are rejected.
        if not uri.startswith("/"):
            raise HTTPParseError(f"Invalid request target: {uri!r}")

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        return method, path, query_params, version, uri

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lowercase names.

        Obsolete line folding (a line starting with whitespace) continues the
        previous header. A repeated header is combined with ", ".
        Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
