"""
=============================================================================
SNIPPET HANDLERS
=============================================================================

    ┌──────────────────┬────────────┬──────────────────────────────────────┐
    │ Route            │ Method     │ Handler                              │
    ├──────────────────┼────────────┼──────────────────────────────────────┤
    │ /                │ GET        │ home            home.html page       │
    │ /snippet/view    │ GET        │ snippet_view    ?id=N, N >= 1        │
    │ /snippet/create  │ any        │ snippet_create  POST only (405)      │
    └──────────────────┴────────────┴──────────────────────────────────────┘

Every failure path goes through the ErrorReporter and returns straight
away; a handler never writes a second response.

    if <bad input>:
        return self.errors.not_found(request)
    ...
    except TemplateError as e:
        return self.errors.server_error(request, e)

Server errors are reported from inside the handler methods themselves,
so the ERROR log line points at the handler, not at a helper.

=============================================================================
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..app import Application
from ..errors import DependencyFailure, HTTPParseError, RecordNotFound, TemplateError, ValidationError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, created, html, ok
from ..http.status_codes import HTTPStatus
from ..templating import render


# Optional sign, then base-10 digits only: "7", "+7", "-5". Rejects "7.0", " 7", "7_0".
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")

MAX_TITLE_LENGTH = 100
EXPIRY_CHOICES = (1, 7, 365)


def parse_id(raw: Optional[str]) -> Optional[int]:
    """The snippet id in `raw`, or None when it is missing, malformed or < 1."""
    if raw is None or not _ID_PATTERN.fullmatch(raw):
        return None
    snippet_id = int(raw)
    return snippet_id if snippet_id >= 1 else None


class SnippetForm:
    """
    A snippet submitted to /snippet/create.

    Accepts application/x-www-form-urlencoded or application/json bodies
    with `title`, `content` and optionally `expires` (days).
    """

    def __init__(self, title: str, content: str, expires: int):
        self.title = title
        self.content = content
        self.expires = expires

    @classmethod
    def from_request(cls, request: HTTPRequest) -> "SnippetForm":
        """
        Raises:
            ValidationError: Missing body, wrong content type, bad fields.
        """
        if not request.body:
            raise ValidationError({"body": "empty request body"})

        try:
            values = cls._values(request)
        except HTTPParseError as e:
            raise ValidationError({"body": str(e)}) from e

        fields: Dict[str, str] = {}

        title = values.get("title")
        title = title.strip() if isinstance(title, str) else ""
        if not title:
            fields["title"] = "This field cannot be blank"
        elif len(title) > MAX_TITLE_LENGTH:
            fields["title"] = f"This field cannot be more than {MAX_TITLE_LENGTH} characters long"

        content = values.get("content")
        content = content.strip() if isinstance(content, str) else ""
        if not content:
            fields["content"] = "This field cannot be blank"

        expires = values.get("expires", EXPIRY_CHOICES[-1])
        if isinstance(expires, str) and expires.isdigit():
            expires = int(expires)
        if isinstance(expires, bool) or expires not in EXPIRY_CHOICES:
            fields["expires"] = "This field must equal 1, 7 or 365"

        if fields:
            raise ValidationError(fields)
        return cls(title, content, expires)

    @staticmethod
    def _values(request: HTTPRequest) -> Dict[str, Any]:
        if request.is_json:
            data = request.json
            if not isinstance(data, dict):
                raise ValidationError({"body": "expected a JSON object"})
            return data
        if request.content_type == "application/x-www-form-urlencoded":
            return {name: values[0] for name, values in request.form.items()}
        raise ValidationError({"body": f"unsupported content type {request.content_type!r}"})


class SnippetHandlers:
    """The snippetbox pages, bound to one Application."""

    def __init__(self, app: Application):
        self.app = app
        self.errors = app.errors

    def _template_data(self, **values: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {"current_year": datetime.now(timezone.utc).year}
        data.update(values)
        return data

    def _render_page(self, page: str, data: Dict[str, Any]) -> bytes:
        """
        Raises:
            TemplateError: The page failed to build or render.
        """
        template_set = self.app.templates.get(page)
        return render(template_set, template_set.entry, data)

    # =========================================================================
    # GET /
    # =========================================================================

    def home(self, request: HTTPRequest) -> HTTPResponse:
        if request.path != "/":
            return self.errors.not_found(request)

        snippets = []
        if self.app.snippets is not None:
            try:
                snippets = self.app.snippets.latest()
            except Exception as e:
                return self.errors.server_error(request, DependencyFailure("snippets", e))

        try:
            page = self._render_page("home.html", self._template_data(snippets=snippets))
        except TemplateError as e:
            return self.errors.server_error(request, e)

        return html(page)

    # =========================================================================
    # GET /snippet/view?id=N
    # =========================================================================

    def snippet_view(self, request: HTTPRequest) -> HTTPResponse:
        snippet_id = parse_id(request.get_query("id"))
        if snippet_id is None:
            return self.errors.not_found(request)

        if self.app.snippets is None:
            return ok(f"Display a specific snippet with ID {snippet_id}...")

        try:
            snippet = self.app.snippets.get(snippet_id)
        except RecordNotFound:
            return self.errors.not_found(request)
        except Exception as e:
            return self.errors.server_error(request, DependencyFailure("snippets", e))

        try:
            page = self._render_page("view.html", self._template_data(snippet=snippet))
        except TemplateError as e:
            return self.errors.server_error(request, e)

        return html(page)

    # =========================================================================
    # POST /snippet/create
    # =========================================================================

    def snippet_create(self, request: HTTPRequest) -> HTTPResponse:
        if request.method != "POST":
            return self.errors.method_not_allowed(request, ["POST"])

        try:
            form = SnippetForm.from_request(request)
        except ValidationError:
            return self.errors.client_error(request, HTTPStatus.BAD_REQUEST)

        if self.app.snippets is None:
            return ok("Create a new snippet...")

        try:
            snippet_id = self.app.snippets.insert(form.title, form.content, form.expires)
        except Exception as e:
            return self.errors.server_error(request, DependencyFailure("snippets", e))

        self.app.info_log.info("Created snippet %d", snippet_id)
        return created(f"Created snippet {snippet_id}\n", location=f"/snippet/view?id={snippet_id}")
