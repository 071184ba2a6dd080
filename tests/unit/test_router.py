"""
Unit tests for the router and path canonicalization.
"""

import pytest

from snippetbox.errors import DuplicateRouteError, MethodNotAllowed, RouteNotFound
from snippetbox.http.paths import canonicalize, is_canonical
from snippetbox.http.request import HTTPRequest
from snippetbox.http.response import HTTPResponse, ok
from snippetbox.http.router import ANY_METHOD, Router


def named(name: str):
    """A handler that answers with its own name."""
    def handler(request: HTTPRequest) -> HTTPResponse:
        return ok(name)
    handler.__name__ = name
    return handler


class TestCanonicalize:
    """Tests for canonicalize()."""

    @pytest.mark.parametrize("path,expected", [
        ("/", "/"),
        ("//", "/"),
        ("/snippet//view", "/snippet/view"),
        ("/snippet/./view", "/snippet/view"),
        ("/static/css/../img/a.png", "/static/img/a.png"),
        ("/static/", "/static/"),
        ("/static/css/..", "/static"),
        ("/a/b/../..", "/"),
    ])
    def test_canonical_forms(self, path, expected):
        assert canonicalize(path) == expected

    @pytest.mark.parametrize("path", [
        "/..",
        "/../etc/passwd",
        "/static/../../etc/passwd",
        "relative",
        "",
        "/a\x00b",
    ])
    def test_rejected_paths(self, path):
        with pytest.raises(RouteNotFound):
            canonicalize(path)

    @pytest.mark.parametrize("path", [
        "/", "//x//", "/a/./b/../c/", "/static/css/main.css", "/x/y/..",
    ])
    def test_idempotent(self, path):
        once = canonicalize(path)
        assert canonicalize(once) == once
        assert is_canonical(once)

    def test_is_canonical(self):
        assert not is_canonical("/a//b")
        assert not is_canonical("/..")


class TestRouterRegistration:
    """Tests for Router.register()."""

    def test_register_and_list(self):
        router = Router()
        router.register("GET", "/", named("home"))
        router.register("get", "/snippet/view", named("view"))

        assert len(router) == 2
        assert [r.method for r in router.routes()] == ["GET", "GET"]

    def test_duplicate_route(self):
        router = Router()
        router.register("GET", "/snippet/view", named("a"))

        with pytest.raises(DuplicateRouteError) as exc_info:
            router.register("GET", "/snippet/view", named("b"))

        assert exc_info.value.method == "GET"
        assert exc_info.value.pattern == "/snippet/view"

    def test_duplicate_detected_after_canonicalization(self):
        router = Router()
        router.register("GET", "/snippet/view", named("a"))
        with pytest.raises(DuplicateRouteError):
            router.register("GET", "/snippet//view", named("b"))

    def test_same_pattern_different_method_is_fine(self):
        router = Router()
        router.register("GET", "/snippet/create", named("form"))
        router.register("POST", "/snippet/create", named("create"))
        assert len(router) == 2

    @pytest.mark.parametrize("pattern", ["snippet", "/a/*b/c", "/*a*"])
    def test_malformed_patterns(self, pattern):
        with pytest.raises(ValueError):
            Router().register("GET", pattern, named("x"))

    def test_decorators(self):
        router = Router()

        @router.get("/")
        def home(request):
            return ok("home")

        @router.route("/snippet/create")
        def create(request):
            return ok("create")

        assert router.dispatch("GET", "/").handler is home
        assert router.dispatch("DELETE", "/snippet/create").route.method == ANY_METHOD


class TestRouterDispatch:
    """Tests for Router.dispatch()."""

    def test_exact_match(self):
        router = Router()
        view = named("view")
        router.register("GET", "/snippet/view", view)

        match = router.dispatch("GET", "/snippet/view")
        assert match.handler is view
        assert match.params == {}

    def test_unregistered_path(self):
        router = Router()
        router.register("GET", "/", named("home"))
        with pytest.raises(RouteNotFound):
            router.dispatch("GET", "/missing")

    def test_exact_beats_subtree_in_either_order(self):
        for order in ("exact-first", "subtree-first"):
            router = Router()
            exact, subtree = named("exact"), named("subtree")
            if order == "exact-first":
                router.register("GET", "/static/robots.txt", exact)
                router.register("GET", "/static/*filepath", subtree)
            else:
                router.register("GET", "/static/*filepath", subtree)
                router.register("GET", "/static/robots.txt", exact)

            assert router.dispatch("GET", "/static/robots.txt").handler is exact
            assert router.dispatch("GET", "/static/other.txt").handler is subtree

    def test_longest_subtree_prefix_wins(self):
        router = Router()
        outer, inner = named("outer"), named("inner")
        router.register("GET", "/*", outer)
        router.register("GET", "/static/*filepath", inner)

        assert router.dispatch("GET", "/static/css/main.css").handler is inner
        assert router.dispatch("GET", "/anything").handler is outer

    def test_subtree_param_is_the_remainder(self):
        router = Router()
        router.register("GET", "/static/*filepath", named("files"))
        match = router.dispatch("GET", "/static/css/main.css")
        assert match.params == {"filepath": "css/main.css"}

    def test_subtree_prefix_requires_trailing_slash(self):
        router = Router()
        router.register("GET", "/static/*filepath", named("files"))
        with pytest.raises(RouteNotFound):
            router.dispatch("GET", "/static")

    def test_path_is_canonicalized_before_matching(self):
        router = Router()
        view = named("view")
        router.register("GET", "/snippet/view", view)

        match = router.dispatch("GET", "/snippet/./x/..//view")
        assert match.handler is view
        assert match.path == "/snippet/view"

    def test_escape_is_not_found(self):
        router = Router()
        router.register("GET", "/static/*filepath", named("files"))
        with pytest.raises(RouteNotFound):
            router.dispatch("GET", "/static/../../etc/passwd")

    def test_method_not_allowed_lists_methods(self):
        router = Router()
        router.register("POST", "/snippet/create", named("create"))
        router.register("PUT", "/snippet/create", named("replace"))

        with pytest.raises(MethodNotAllowed) as exc_info:
            router.dispatch("GET", "/snippet/create")

        assert exc_info.value.allowed == ["POST", "PUT"]
        assert exc_info.value.headers["Allow"] == "POST, PUT"

    def test_any_method_route(self):
        router = Router()
        router.register(ANY_METHOD, "/snippet/create", named("create"))
        for method in ("GET", "POST", "DELETE"):
            assert router.dispatch(method, "/snippet/create").route.pattern == "/snippet/create"

    def test_allowed_methods(self):
        router = Router()
        router.register("GET", "/", named("home"))
        assert router.allowed_methods("/") == ["GET"]
        assert router.allowed_methods("/missing") == []
        assert router.allowed_methods("/..") == []


class TestRouterHandle:
    """Tests for Router.handle()."""

    def test_handle_writes_canonical_path_and_params(self):
        router = Router()
        seen = {}

        @router.get("/static/*filepath")
        def files(request):
            seen["path"] = request.path
            seen["params"] = dict(request.path_params)
            return ok("file")

        response = router.handle(HTTPRequest(method="GET", path="/static//css/./main.css"))

        assert response.body == b"file"
        assert seen == {"path": "/static/css/main.css", "params": {"filepath": "css/main.css"}}

    def test_handle_propagates_lookup_failures(self):
        router = Router()
        router.register("GET", "/", named("home"))

        with pytest.raises(RouteNotFound):
            router.handle(HTTPRequest(method="GET", path="/nope"))
        with pytest.raises(MethodNotAllowed):
            router.handle(HTTPRequest(method="POST", path="/"))


def test_not_found_alias():
    from snippetbox.errors import NotFoundError

    with pytest.raises(NotFoundError):
        Router().dispatch("GET", "/")
