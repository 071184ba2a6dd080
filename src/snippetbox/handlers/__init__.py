"""
Request handlers.

    snippets.py  home, snippet_view, snippet_create
    static.py    files under /static/
"""

from .snippets import SnippetForm, SnippetHandlers, parse_id
from .static import StaticFileHandler, strip_prefix

__all__ = [
    "SnippetForm",
    "SnippetHandlers",
    "parse_id",
    "StaticFileHandler",
    "strip_prefix",
]
