"""
Middleware wrapped around the router.

    base.py      Middleware, MiddlewarePipeline
    logging.py   RequestLogMiddleware  (INFO access log)
    recover.py   RecoverMiddleware     (escaped exceptions → reporter)
    headers.py   SecureHeadersMiddleware
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import RequestLog, RequestLogMiddleware
from .recover import RecoverMiddleware
from .headers import SecureHeadersMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "RequestLog",
    "RequestLogMiddleware",
    "RecoverMiddleware",
    "SecureHeadersMiddleware",
]
