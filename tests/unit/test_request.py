"""
Unit tests for HTTP request parsing.
"""

import pytest

from snippetbox.errors import HTTPParseError
from snippetbox.http.request import HTTPRequest, RequestParser, parse_request


SIMPLE_GET = (
    b"GET /snippet/view?id=7&id=8 HTTP/1.1\r\n"
    b"Host: localhost:4000\r\n"
    b"User-Agent: pytest\r\n"
    b"\r\n"
)


class TestRequestParser:
    """Tests for RequestParser."""

    def test_parse_simple_get(self):
        request = RequestParser().parse(SIMPLE_GET, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/snippet/view"
        assert request.uri == "/snippet/view?id=7&id=8"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_headers_are_lowercased(self):
        request = parse_request(SIMPLE_GET)

        assert request.headers["host"] == "localhost:4000"
        assert request.get_header("User-Agent") == "pytest"
        assert request.get_header("X-Missing", "none") == "none"

    def test_query_first_value_wins(self):
        request = parse_request(SIMPLE_GET)

        assert request.get_query("id") == "7"
        assert request.query_params["id"] == ["7", "8"]
        assert request.get_query("missing") is None

    def test_percent_decoded_path(self):
        request = parse_request(b"GET /static/a%20b.css HTTP/1.1\r\nHost: x\r\n\r\n")
        assert request.path == "/static/a b.css"

    def test_dot_segments_are_left_for_the_router(self):
        request = parse_request(b"GET /static/../secret HTTP/1.1\r\nHost: x\r\n\r\n")
        assert request.path == "/static/../secret"

    def test_body_is_cut_to_content_length(self):
        raw = (
            b"POST /snippet/create HTTP/1.1\r\n"
            b"Content-Type: application/x-www-form-urlencoded\r\n"
            b"Content-Length: 7\r\n"
            b"\r\n"
            b"title=aEXTRA"
        )
        request = parse_request(raw)

        assert request.body == b"title=a"
        assert request.get_form("title") == "a"

    def test_repeated_headers_are_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: text/html\r\nAccept: text/plain\r\n\r\n"
        assert parse_request(raw).headers["accept"] == "text/html, text/plain"

    def test_unknown_method_is_not_implemented(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"BREW /pot HTTP/1.1\r\nHost: x\r\n\r\n")
        assert exc_info.value.status_code == 501

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET / HTTP/2.0\r\nHost: x\r\n\r\n")
        assert exc_info.value.status_code == 505

    @pytest.mark.parametrize("raw", [
        b"GET\r\nHost: x\r\n\r\n",
        b"GET snippet HTTP/1.1\r\nHost: x\r\n\r\n",
        b"GET / HTTP/1.1\r\nHost: x\r\n",
        b"POST / HTTP/1.1\r\nContent-Length: abc\r\n\r\n",
        b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nshort",
    ])
    def test_malformed_requests_are_bad_requests(self, raw: bytes):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)
        assert exc_info.value.status_code == 400

    def test_request_too_large(self):
        raw = b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser(max_request_size=10).parse(raw)
        assert exc_info.value.status_code == 413


class TestHTTPRequest:
    """Tests for HTTPRequest accessors."""

    def test_uri_defaults_to_path(self):
        assert HTTPRequest(method="GET", path="/").uri == "/"

    def test_json_body(self):
        request = HTTPRequest(
            method="POST",
            path="/snippet/create",
            headers={"content-type": "application/json; charset=utf-8"},
            body=b'{"title": "t"}',
        )
        assert request.is_json
        assert request.json == {"title": "t"}

    def test_invalid_json_raises(self):
        request = HTTPRequest(
            method="POST",
            path="/",
            headers={"content-type": "application/json"},
            body=b"{nope",
        )
        with pytest.raises(HTTPParseError):
            request.json

    def test_form_ignores_other_content_types(self):
        request = HTTPRequest(
            method="POST",
            path="/",
            headers={"content-type": "text/plain"},
            body=b"title=a",
        )
        assert request.form == {}

    @pytest.mark.parametrize("version,connection,expected", [
        ("HTTP/1.1", "", True),
        ("HTTP/1.1", "close", False),
        ("HTTP/1.0", "", False),
        ("HTTP/1.0", "keep-alive", True),
    ])
    def test_keep_alive(self, version, connection, expected):
        headers = {"connection": connection} if connection else {}
        request = HTTPRequest(method="GET", path="/", version=version, headers=headers)
        assert request.is_keep_alive is expected
