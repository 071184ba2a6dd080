"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   GET /snippet//view?id=7                                           │
    │        │                                                            │
    │        ▼  canonicalize()                                            │
    │   /snippet/view                                                     │
    │        │                                                            │
    │        ▼  most specific pattern                                     │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  GET  /                  → home                             │   │
    │   │  GET  /snippet/view      → snippet_view     ← MATCH         │   │
    │   │  *    /snippet/create    → snippet_create                   │   │
    │   │  GET  /static/*filepath  → static files                     │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                            │
    │        ▼  method check                                              │
    │   snippet_view(request)                                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTE PATTERNS
=============================================================================

1. EXACT: the canonical path must equal the pattern.

   Pattern: /snippet/view
   Matches: /snippet/view, /snippet//view, /snippet/./view
   Doesn't match: /snippet/view/, /snippet/view/1

2. SUBTREE: a trailing wildcard segment matches the prefix and
   everything below it. The remainder is stored in path_params.

   Pattern: /static/*filepath
   Matches: /static/                → {"filepath": ""}
            /static/css/main.css    → {"filepath": "css/main.css"}
   Doesn't match: /static, /staticfoo

   "/*" is a catch-all for the whole tree.

=============================================================================
PRECEDENCE
=============================================================================

Routes are chosen by specificity, never by registration order:

    1. An exact pattern equal to the path wins.
    2. Otherwise the subtree pattern with the LONGEST prefix wins.
    3. Within the winning pattern the method is checked: an entry for the
       request method, else an any-method ("*") entry, else 405 with the
       methods that pattern does accept.

A (method, pattern) pair can be registered only once.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import logging

from ..errors import DuplicateRouteError, MethodNotAllowed, RouteNotFound
from .paths import canonicalize
from .request import HTTPRequest
from .response import HTTPResponse


logger = logging.getLogger(__name__)


# Handler: a function that takes a request and returns a response.
Handler = Callable[[HTTPRequest], HTTPResponse]

ANY_METHOD = "*"


@dataclass(frozen=True)
class Route:
    """
    A registered route.

        Route(method="GET", pattern="/static/*filepath", handler=<fn>,
              prefix="/static/", param="filepath")

    `prefix` is None for exact patterns.
    """

    method: str
    pattern: str
    handler: Handler = field(compare=False)
    prefix: Optional[str] = None
    param: Optional[str] = None


@dataclass
class RouteMatch:
    """
    Result of a successful dispatch.

    Attributes:
        route:  The route that won.
        path:   The canonical request path.
        params: Subtree remainder, e.g. {"filepath": "css/main.css"}.
    """

    route: Route
    path: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def handler(self) -> Handler:
        return self.route.handler


def _normalize_method(method: Optional[str]) -> str:
    if method is None or method == ANY_METHOD:
        return ANY_METHOD
    return method.upper()


def _parse_pattern(pattern: str) -> tuple[Optional[str], Optional[str]]:
    """
    Split a pattern into (subtree prefix, parameter name).

        "/snippet/view"      → (None, None)
        "/static/*filepath"  → ("/static/", "filepath")
        "/static/*"          → ("/static/", "wildcard")
        "/*"                 → ("/", "wildcard")
    """
    if not pattern.startswith("/"):
        raise ValueError(f"route pattern must start with '/': {pattern!r}")

    head, _, last = pattern.rpartition("/")
    if last.startswith("*"):
        if "*" in head or "*" in last[1:]:
            raise ValueError(f"wildcard must be the last segment: {pattern!r}")
        return head + "/", last[1:] or "wildcard"

    if "*" in pattern:
        raise ValueError(f"wildcard must be the last segment: {pattern!r}")
    return None, None


class Router:
    """
    HTTP request router with exact and subtree patterns.

    ==========================================================================
    USAGE
    ==========================================================================

        router = Router()
        router.register("GET", "/", home)
        router.register("GET", "/snippet/view", snippet_view)
        router.register("*", "/snippet/create", snippet_create)

        @router.get("/static/*filepath")
        def static(request):
            ...

        match = router.dispatch("GET", "/snippet/view")
        response = match.handler(request)

    ==========================================================================
    INTERNAL LAYOUT
    ==========================================================================

        _exact:    {"/snippet/view": {"GET": Route}}
        _subtrees: {"/static/":      {"GET": Route}}

    Exact lookups are a dict hit. Subtree prefixes are scanned longest
    first; the sorted prefix list is rebuilt on registration only.

    Registration is expected to finish before the server starts; after
    that the router is only read.
    ==========================================================================
    """

    def __init__(self):
        self._exact: Dict[str, Dict[str, Route]] = {}
        self._subtrees: Dict[str, Dict[str, Route]] = {}
        self._prefixes: List[str] = []
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def register(self, method: Optional[str], pattern: str, handler: Handler) -> Route:
        """
        Register `handler` for (method, pattern).

        Args:
            method: HTTP method, or "*" / None for any method.
            pattern: Exact path or subtree pattern ending in "*name".
            handler: Callable taking an HTTPRequest, returning an HTTPResponse.

        Raises:
            DuplicateRouteError: The pair is already registered.
            ValueError: The pattern is malformed.
        """
        method = _normalize_method(method)
        prefix, param = _parse_pattern(pattern)

        if prefix is None:
            key, table = canonicalize(pattern), self._exact
        else:
            key, table = canonicalize(prefix), self._subtrees

        entries = table.setdefault(key, {})
        if method in entries:
            raise DuplicateRouteError(method, pattern)

        route = Route(method=method, pattern=pattern, handler=handler, prefix=prefix, param=param)
        entries[method] = route
        self._routes.append(route)

        if prefix is not None:
            self._prefixes = sorted(self._subtrees, key=len, reverse=True)

        logger.debug("Registered route %s %s", method, pattern)
        return route

    def route(self, pattern: str, method: Optional[str] = None) -> Callable[[Handler], Handler]:
        """
        Decorator form of register().

            @router.route("/snippet/create")
            def snippet_create(request):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.register(method, pattern, handler)
            return handler
        return decorator

    def get(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, "GET")

    def post(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, "POST")

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def dispatch(self, method: str, path: str) -> RouteMatch:
        """
        Resolve (method, path) to a route.

        Raises:
            RouteNotFound: No pattern matches the canonical path, or the
                path escapes the root.
            MethodNotAllowed: The most specific pattern has no entry for
                `method`.
        """
        canonical = canonicalize(path)
        entries, remainder = self._lookup(canonical)
        if entries is None:
            raise RouteNotFound(f"no route matches {canonical}")

        route = entries.get(method.upper()) or entries.get(ANY_METHOD)
        if route is None:
            raise MethodNotAllowed(list(entries))

        params = {route.param: remainder} if route.param is not None else {}
        return RouteMatch(route=route, path=canonical, params=params)

    def _lookup(self, canonical: str) -> tuple[Optional[Dict[str, Route]], str]:
        """Most specific entry table for the path, plus the subtree remainder."""
        entries = self._exact.get(canonical)
        if entries is not None:
            return entries, ""

        for prefix in self._prefixes:
            if canonical.startswith(prefix):
                return self._subtrees[prefix], canonical[len(prefix):]

        return None, ""

    def allowed_methods(self, path: str) -> List[str]:
        """
        Methods accepted by the most specific pattern matching `path`.

        Returns an empty list when nothing matches. An any-method entry
        shows up as "*".
        """
        try:
            entries, _ = self._lookup(canonicalize(path))
        except RouteNotFound:
            return []
        return sorted(entries) if entries else []

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch `request` and call the winning handler.

        The canonical path and path params are written into the request
        before the handler runs. RouteNotFound and MethodNotAllowed
        propagate to the caller, which decides how to report them.
        """
        match = self.dispatch(request.method, request.path)
        request.path = match.path
        request.path_params = match.params
        return match.handler(request)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        """All registered routes in registration order."""
        return list(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
