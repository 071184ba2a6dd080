"""
=============================================================================
ROUTE TABLE
=============================================================================

    GET  /                  home
    GET  /snippet/view      snippet_view
    *    /snippet/create    snippet_create   (checks POST itself)
    GET  /static/*filepath  static files, "/static" stripped

and the handler chain the server runs for every request:

    RequestLogMiddleware → RecoverMiddleware → SecureHeadersMiddleware → dispatch

dispatch() asks the router for a route and turns its two lookup failures
into responses through the ErrorReporter:

    RouteNotFound     → 404 Not Found
    MethodNotAllowed  → 405 Method Not Allowed + Allow

=============================================================================
"""

from .app import Application
from .errors import MethodNotAllowed, RouteNotFound
from .handlers import SnippetHandlers, StaticFileHandler, strip_prefix
from .http.request import HTTPRequest
from .http.response import HTTPResponse
from .http.router import ANY_METHOD, Router
from .middleware import (
    MiddlewarePipeline,
    NextHandler,
    RecoverMiddleware,
    RequestLogMiddleware,
    SecureHeadersMiddleware,
)


def routes(app: Application) -> Router:
    """Register every snippetbox route against a new Router."""
    router = Router()
    pages = SnippetHandlers(app)

    if app.config.static_dir:
        files = StaticFileHandler(app.config.static_dir, app.errors)
        router.register("GET", "/static/*filepath", strip_prefix("/static", files.handle))

    router.register("GET", "/", pages.home)
    router.register("GET", "/snippet/view", pages.snippet_view)
    router.register(ANY_METHOD, "/snippet/create", pages.snippet_create)
    return router


def build_handler(app: Application) -> NextHandler:
    """
    The complete request handler for `app`: middleware around dispatch.

    The returned callable holds references to `app` only; publishing a new
    Application means building a new handler.
    """
    router = routes(app)

    def dispatch(request: HTTPRequest) -> HTTPResponse:
        try:
            return router.handle(request)
        except RouteNotFound:
            return app.errors.not_found(request)
        except MethodNotAllowed as e:
            return app.errors.method_not_allowed(request, e.allowed)

    pipeline = MiddlewarePipeline().use(
        RequestLogMiddleware(app.info_log),
        RecoverMiddleware(app.errors),
        SecureHeadersMiddleware(),
    )
    return pipeline.wrap(dispatch)
