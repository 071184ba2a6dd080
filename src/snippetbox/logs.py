"""
=============================================================================
APPLICATION LOGGERS
=============================================================================

The server writes two leveled logs:

    stdout  INFO\t2026/10/18 09:14:02 Starting server on :4000
    stderr  ERROR\t2026/10/18 09:14:07 snippets.py:58: <error + traceback>

    ┌────────────────────┬──────────┬─────────────────────────────────────┐
    │ Logger             │ Sink     │ Line prefix                         │
    ├────────────────────┼──────────┼─────────────────────────────────────┤
    │ snippetbox.info    │ stdout   │ INFO\t<date> <time>                 │
    │ snippetbox.error   │ stderr   │ ERROR\t<date> <time> <file>:<line>: │
    └────────────────────┴──────────┴─────────────────────────────────────┘

The ERROR origin is the `origin` attribute of the LogRecord. The
ErrorReporter passes the handler that reported the failure as
extra={"origin": ...}; any other call on the error log gets its own
filename:lineno from OriginFilter.

Both loggers are standalone (not in the logging.getLogger() registry)
and non-propagating: records never reach the root logger, so a library
calling logging.basicConfig() does not duplicate them.

Concurrent writes: each logging.Handler holds its own lock while
emitting, so one handler never interleaves two records. When both
loggers share ONE stream (tests often pass the same buffer twice), the
two handlers have different locks; the stream is then wrapped in a
SynchronizedStream so writes from both loggers are serialized.

=============================================================================
"""

import logging
import sys
import threading
from typing import IO, Optional, Sequence


INFO_LOGGER = "snippetbox.info"
ERROR_LOGGER = "snippetbox.error"

DATE_FORMAT = "%Y/%m/%d %H:%M:%S"
INFO_FORMAT = "INFO\t%(asctime)s %(message)s"
ERROR_FORMAT = "ERROR\t%(asctime)s %(origin)s: %(message)s"


class SynchronizedStream:
    """
    A text stream whose write() and flush() are serialized by a lock.

    Only write/flush are used by logging.StreamHandler; everything else
    is delegated to the wrapped stream.
    """

    def __init__(self, stream: IO[str]):
        self._stream = stream
        self._lock = threading.Lock()

    def write(self, text: str) -> int:
        with self._lock:
            return self._stream.write(text)

    def flush(self) -> None:
        with self._lock:
            self._stream.flush()

    def __getattr__(self, name):
        return getattr(self._stream, name)


class OriginFilter(logging.Filter):
    """Sets record.origin to "<file>:<line>" unless the caller supplied one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "origin"):
            record.origin = f"{record.filename}:{record.lineno}"
        return True


def _build_logger(
    name: str,
    stream: IO[str],
    fmt: str,
    level: int,
    filters: Sequence[logging.Filter] = (),
) -> logging.Logger:
    # Not registered with logging.getLogger(): every Application owns its
    # loggers, and building a second one never redirects the first.
    logger = logging.Logger(name)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    for log_filter in filters:
        handler.addFilter(log_filter)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def new_loggers(
    stdout: Optional[IO[str]] = None,
    stderr: Optional[IO[str]] = None,
) -> tuple[logging.Logger, logging.Logger]:
    """
    Build the (info_log, error_log) pair.

    Args:
        stdout: Sink for the INFO log (default sys.stdout).
        stderr: Sink for the ERROR log (default sys.stderr).

    Returns:
        The configured info and error loggers.
    """
    out = stdout if stdout is not None else sys.stdout
    err = stderr if stderr is not None else sys.stderr
    if out is err:
        out = err = SynchronizedStream(out)

    info_log = _build_logger(INFO_LOGGER, out, INFO_FORMAT, logging.INFO)
    error_log = _build_logger(ERROR_LOGGER, err, ERROR_FORMAT, logging.ERROR, [OriginFilter()])
    return info_log, error_log
