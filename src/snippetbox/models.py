"""
Snippet records and the data-access capability handlers depend on.

Handlers only see the SnippetStore protocol. MemorySnippetStore is the
implementation used in development and tests; a database-backed store
would implement the same three methods.
"""

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol

from .errors import RecordNotFound


@dataclass(frozen=True)
class Snippet:
    id: int
    title: str
    content: str
    created: datetime
    expires: datetime


class SnippetStore(Protocol):
    def insert(self, title: str, content: str, expires_days: int) -> int:
        """Store a new snippet and return its id."""
        ...

    def get(self, snippet_id: int) -> Snippet:
        """Return a live snippet, or raise RecordNotFound."""
        ...

    def latest(self, limit: int = 10) -> List[Snippet]:
        """Most recently created live snippets, newest first."""
        ...


class MemorySnippetStore:
    """
    A SnippetStore kept in a dict.

    Every method takes the lock, so one instance can be shared by all
    worker threads. Expired snippets are invisible but not purged.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._snippets: dict[int, Snippet] = {}
        self._ids = itertools.count(1)

    def insert(self, title: str, content: str, expires_days: int) -> int:
        now = self._clock()
        with self._lock:
            snippet_id = next(self._ids)
            self._snippets[snippet_id] = Snippet(
                id=snippet_id,
                title=title,
                content=content,
                created=now,
                expires=now + timedelta(days=expires_days),
            )
        return snippet_id

    def get(self, snippet_id: int) -> Snippet:
        now = self._clock()
        with self._lock:
            snippet = self._snippets.get(snippet_id)
        if snippet is None or snippet.expires <= now:
            raise RecordNotFound(f"no snippet with id {snippet_id}")
        return snippet

    def latest(self, limit: int = 10) -> List[Snippet]:
        now = self._clock()
        with self._lock:
            live = [s for s in self._snippets.values() if s.expires > now]
        live.sort(key=lambda s: s.id, reverse=True)
        return live[:limit]
