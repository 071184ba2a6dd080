"""
Per-page template cache.

Every page of the site is its own TemplateSet built from the same layout:

    ui/html/
    ├── base.html              ─┐
    ├── partials/              ─┼─ shared by every page
    │   └── nav.html           ─┘
    └── pages/
        ├── home.html          → cache["home.html"]
        └── view.html          → cache["view.html"]

With caching on, all sets are built at startup, so a broken template
stops the server from starting. With caching off (development), each
get() re-reads the sources, so edits show up on the next request and a
broken template surfaces inside the handler that asked for it.

The cache is never modified after construction. Reloading templates means
building a new TemplateCache and publishing a new Application with it.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from ..errors import TemplateBuildError
from .builder import Source, TemplateSet, build


logger = logging.getLogger(__name__)


class TemplateCache:
    """Immutable mapping of page name → TemplateSet (or its sources)."""

    __slots__ = ("_sources", "_sets", "cached")

    def __init__(self, pages: Mapping[str, Sequence[Source]], cached: bool = True):
        """
        Args:
            pages: Page name → ordered template sources for that page.
            cached: Build every set now (True) or on every get() (False).

        Raises:
            TemplateBuildError: With cached=True, when any page fails to build.
        """
        self._sources = MappingProxyType({page: tuple(srcs) for page, srcs in pages.items()})
        self.cached = cached
        self._sets: Optional[Mapping[str, TemplateSet]] = None
        if cached:
            self._sets = MappingProxyType({
                page: build(srcs) for page, srcs in self._sources.items()
            })

    @classmethod
    def from_directory(cls, root: Source, cached: bool = True) -> "TemplateCache":
        """
        Discover pages under `root` (see module docstring for the layout).

        Sources per page are ordered: base.html, partials sorted by name,
        the page itself.
        """
        root = Path(root)
        base = root / "base.html"
        partials = sorted((root / "partials").glob("*.html"))
        pages = {
            page.name: [base, *partials, page]
            for page in sorted((root / "pages").glob("*.html"))
        }
        logger.debug("Found %d template pages under %s", len(pages), root)
        return cls(pages, cached=cached)

    def get(self, page: str) -> TemplateSet:
        """
        The TemplateSet for `page`.

        Raises:
            TemplateBuildError: Unknown page, or (uncached) a source failed to build.
        """
        if page not in self._sources:
            raise TemplateBuildError(page, message=f"the template {page} does not exist")
        if self._sets is not None:
            return self._sets[page]
        return build(self._sources[page])

    def sources(self, page: str) -> tuple:
        return self._sources[page]

    def pages(self) -> list[str]:
        return sorted(self._sources)

    def __contains__(self, page: object) -> bool:
        return page in self._sources

    def __len__(self) -> int:
        return len(self._sources)
