"""
Template sets: named HTML fragments composed at render time.

    builder.py   build(sources) → TemplateSet, render(set, entry, data) → bytes
    cache.py     TemplateCache: one TemplateSet per page
"""

from .builder import Fragment, TemplateSet, build, render, create_environment, human_date
from .cache import TemplateCache

__all__ = [
    "Fragment",
    "TemplateSet",
    "build",
    "render",
    "create_environment",
    "human_date",
    "TemplateCache",
]
