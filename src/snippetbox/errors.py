"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can produce belongs to one of these classes.
Each class has exactly one reporting path:

    ┌──────────────────────────┬───────────────┬──────────────────────────┐
    │ Exception                │ Status        │ Logged?                  │
    ├──────────────────────────┼───────────────┼──────────────────────────┤
    │ RouteNotFound            │ 404           │ no                       │
    │ MethodNotAllowed         │ 405 + Allow   │ no                       │
    │ ValidationError          │ 400           │ no                       │
    │ HTTPParseError           │ 400 / 413     │ no                       │
    │ TemplateBuildError       │ 500           │ ERROR, once, with trace  │
    │ TemplateRenderError      │ 500           │ ERROR, once, with trace  │
    │ DependencyFailure        │ 500           │ ERROR, once, with trace  │
    │ DuplicateRouteError      │ startup abort │ -                        │
    └──────────────────────────┴───────────────┴──────────────────────────┘

Client errors (4xx) are the caller's fault: they get the standard status
text and nothing is written to the error log. Server errors (5xx) are ours:
they are logged by the ErrorReporter and the client only ever sees
"Internal Server Error".

=============================================================================
"""

from typing import Dict, List, Optional


class SnippetboxError(Exception):
    """Base class for all errors raised by this package."""


# =============================================================================
# CLIENT ERRORS (4xx)
# =============================================================================

class HTTPError(SnippetboxError):
    """
    An error that maps directly onto an HTTP status code.

    Handlers may raise these instead of building a response themselves.
    The recover middleware answers a 4xx status as a client error; a bare
    HTTPError keeps the 500 default and is logged as a server error.
    """

    status_code = 500

    def __init__(self, message: str = "", headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.headers = dict(headers or {})


class RouteNotFound(HTTPError):
    """No route matches the canonical request path (404)."""

    status_code = 404


class MethodNotAllowed(HTTPError):
    """
    The path matched a route but not for this method (405).

    Attributes:
        allowed: Methods registered for the matched pattern, sorted.
    """

    status_code = 405

    def __init__(self, allowed: List[str], message: str = ""):
        self.allowed = sorted(allowed)
        super().__init__(
            message or "method not allowed",
            headers={"Allow": ", ".join(self.allowed)},
        )


class ValidationError(HTTPError):
    """
    The request body or parameters failed validation (400).

    Attributes:
        fields: Mapping of field name to a human readable problem.
    """

    status_code = 400

    def __init__(self, fields: Optional[Dict[str, str]] = None, message: str = ""):
        self.fields = dict(fields or {})
        super().__init__(message or "invalid request: " + ", ".join(sorted(self.fields)))


class HTTPParseError(HTTPError):
    """
    The bytes on the wire are not a valid HTTP/1.x request.

    Raised by the request parser. `status_code` is usually 400 but may be
    413 (too large) or 505 (unsupported version).
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# STARTUP ERRORS
# =============================================================================

class DuplicateRouteError(SnippetboxError):
    """The same (method, pattern) pair was registered twice."""

    def __init__(self, method: str, pattern: str):
        super().__init__(f"route already registered: {method} {pattern}")
        self.method = method
        self.pattern = pattern


# =============================================================================
# SERVER ERRORS (5xx)
# =============================================================================

class TemplateError(SnippetboxError):
    """Base class for template build and render failures."""


class TemplateBuildError(TemplateError):
    """
    A template source could not be read or parsed.

    Attributes:
        source: The source (usually a file path) that failed.
        cause: The underlying exception (OSError, jinja2 syntax error, ...).
    """

    def __init__(self, source: str, cause: Optional[BaseException] = None, message: str = ""):
        detail = message or (str(cause) if cause is not None else "invalid template")
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.cause = cause


class TemplateRenderError(TemplateError):
    """
    Executing a template set failed.

    Attributes:
        fragment: The fragment being rendered when the failure happened.
        missing_fragment: Set when a fragment invoked a name that is not
            defined in the set.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        fragment: str,
        missing_fragment: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        if missing_fragment is not None:
            message = f"no such template {missing_fragment!r}"
        else:
            message = f"error rendering {fragment!r}: {cause}"
        super().__init__(message)
        self.fragment = fragment
        self.missing_fragment = missing_fragment
        self.cause = cause


class DependencyFailure(SnippetboxError):
    """An internal collaborator (data store, filesystem, ...) failed."""

    def __init__(self, collaborator: str, cause: BaseException):
        super().__init__(f"{collaborator}: {cause}")
        self.collaborator = collaborator
        self.cause = cause


class RecordNotFound(SnippetboxError):
    """The data store holds no record for the requested key."""


# Short names used throughout the request-dispatch documentation.
NotFoundError = RouteNotFound
ParseError = TemplateBuildError
RenderError = TemplateRenderError
