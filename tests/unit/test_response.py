"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timezone

import pytest

from snippetbox.http.response import (
    HTTPResponse,
    ResponseBuilder,
    created,
    error_text,
    format_http_date,
    html,
    ok,
    redirect,
)
from snippetbox.http.status_codes import HTTPStatus, status_text


class TestHTTPResponse:
    """Tests for HTTPResponse."""

    def test_status_line(self):
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=404).status_line == "HTTP/1.1 404 Not Found"

    def test_unknown_status_has_no_phrase(self):
        assert HTTPResponse(status=299).status_line == "HTTP/1.1 299"

    def test_to_bytes(self):
        response = HTTPResponse(status=HTTPStatus.OK, headers={"X-Custom": "value"}, body=b"test")
        result = response.to_bytes("snippetbox-test")

        head, _, body = result.partition(b"\r\n\r\n")
        assert head.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value" in head
        assert b"Content-Length: 4" in head
        assert b"Server: snippetbox-test" in head
        assert b"Date: " in head
        assert body == b"test"

    def test_get_header_is_case_insensitive(self):
        response = HTTPResponse(headers={"Content-Type": "text/plain"})
        assert response.get_header("content-type") == "text/plain"
        assert response.get_header("x-missing") == ""

    def test_set_header_chaining(self):
        response = HTTPResponse().set_header("X-One", "1").set_header("X-Two", "2")
        assert response.headers == {"X-One": "1", "X-Two": "2"}


class TestResponseBuilder:
    """Tests for ResponseBuilder."""

    def test_text(self):
        response = ResponseBuilder().status(HTTPStatus.CREATED).text("hi").build()
        assert response.status == 201
        assert response.body == b"hi"
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_html_accepts_bytes(self):
        response = ResponseBuilder().html(b"<p>x</p>").build()
        assert response.body == b"<p>x</p>"
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"

    def test_redirect_defaults_to_see_other(self):
        response = ResponseBuilder().redirect("/snippet/view?id=1").build()
        assert response.status == HTTPStatus.SEE_OTHER
        assert response.headers["Location"] == "/snippet/view?id=1"

    def test_close_connection(self):
        assert ResponseBuilder().close_connection().build().headers["Connection"] == "close"


class TestHelpers:
    """Tests for the response helper functions."""

    def test_ok(self):
        response = ok("Display a specific snippet with ID 7...")
        assert response.status == 200
        assert b"7" in response.body

    def test_html(self):
        assert html(b"<h1>x</h1>", status=HTTPStatus.NOT_FOUND).status == 404

    def test_created_sets_location(self):
        response = created("done\n", location="/snippet/view?id=3")
        assert response.status == 201
        assert response.headers["Location"] == "/snippet/view?id=3"

    def test_redirect(self):
        assert redirect("/", HTTPStatus.FOUND).status == 302

    @pytest.mark.parametrize("status", [400, 404, 405, 500])
    def test_error_text_body_is_the_reason_phrase(self, status):
        response = error_text(status)
        assert response.status == status
        assert response.body == (status_text(status) + "\n").encode()
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_error_text_extra_headers(self):
        response = error_text(405, {"Allow": "POST"})
        assert response.headers["Allow"] == "POST"

    def test_format_http_date(self):
        moment = datetime(2026, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
        assert format_http_date(moment) == "Fri, 02 Jan 2026 15:04:05 GMT"


class TestStatusCodes:
    def test_classification(self):
        assert HTTPStatus.NOT_FOUND.is_client_error
        assert not HTTPStatus.NOT_FOUND.is_server_error
        assert HTTPStatus.SERVICE_UNAVAILABLE.is_server_error

    def test_status_text_unknown(self):
        assert status_text(299) == ""
