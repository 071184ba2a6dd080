"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

A middleware wraps the next handler in the chain:

        ┌─────────────────────────────────────────────────────────┐
        │  RequestLogMiddleware                                   │
        │  ┌───────────────────────────────────────────────────┐  │
        │  │  RecoverMiddleware                                │  │
        │  │  ┌─────────────────────────────────────────────┐  │  │
        │  │  │  SecureHeadersMiddleware                    │  │  │
        │  │  │  ┌─────────────────────────────────────┐    │  │  │
        │  │  │  │         dispatch (router)           │    │  │  │
        │  │  │  └─────────────────────────────────────┘    │  │  │
        │  │  └─────────────────────────────────────────────┘  │  │
        │  └───────────────────────────────────────────────────┘  │
        └─────────────────────────────────────────────────────────┘

Requests flow inward in the order middleware was added; responses flow
back outward.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware or the final handler.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

        class Timing(Middleware):
            def __call__(self, request, next):
                # before the handler
                response = next(request)
                # after the handler
                return response

    Not calling next() short-circuits the chain.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.use(RequestLogMiddleware(log), RecoverMiddleware(errors))
        handler = pipeline.wrap(dispatch)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append `middleware`; the first one added is the outermost."""
        self._middleware.append(middleware)
        logger.debug("Added middleware: %s", middleware.name)
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain: [MW1, MW2] + handler → MW1 → MW2 → handler.

        Wrapping runs in reverse so the first-added middleware ends up
        outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler,
    ) -> NextHandler:
        # A separate function so each closure captures its own pair.
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)
