"""
=============================================================================
TEMPLATE SET BUILDER
=============================================================================

Builds a TemplateSet (named, mutually-referencing fragments) out of an
ordered list of template files, and renders it to bytes.

=============================================================================
FRAGMENTS
=============================================================================

A source file declares fragments with `define` blocks and invokes them
with the `template()` function. The expression language inside the
fragments is Jinja2, with autoescaping on.

    base.html                          pages/home.html
    ─────────                          ───────────────
    {% define "base" %}                {% define "title" %}Home{% enddefine %}
    <title>{{ template("title") }}     {% define "main" %}
    </title>                             <h2>Latest Snippets</h2>
    {{ template("nav") }}              {% enddefine %}
    <main>{{ template("main") }}</main>
    {% enddefine %}

    partials/nav.html
    ─────────────────
    {% define "nav" %}<nav>...</nav>{% enddefine %}

    build([base.html, partials/nav.html, pages/home.html])

        ┌──────────────── TemplateSet ─────────────────┐
        │  entry = "base"     (first fragment of the   │
        │                      first source)           │
        │  base  ──template("title")──►  title         │
        │        ──template("nav")────►  nav           │
        │        ──template("main")───►  main          │
        └──────────────────────────────────────────────┘

References are resolved when the set is RENDERED, not when it is built:
base.html may name "title" although it is only defined by a later file.
A later definition of a name replaces an earlier one, which is how a page
overrides a default block from the base.

A source without any `define` block contributes a single fragment named
after the file, e.g. "home.html".

=============================================================================
ESCAPING
=============================================================================

Every {{ expression }} is HTML-escaped (markupsafe). For other contexts:

    <a href="/search?q={{ q | urlencode }}">      URL component
    <script>const data = {{ data | tojson }};</script>   script

A fragment invoked with template() returns Markup, so it is inserted
as-is into the invoking fragment (it has already been escaped).

=============================================================================
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Union

import jinja2
from jinja2 import pass_context
from markupsafe import Markup

from ..errors import TemplateBuildError, TemplateRenderError


Source = Union[str, Path]

MAX_DEPTH = 64
"""Deepest allowed chain of template() invocations."""

_SET_VAR = "__template_set__"
_DEPTH_VAR = "__template_depth__"

_DEFINE = re.compile(
    r'\{%-?\s*define\s+"(?P<name>[^"]+)"\s*-?%\}(?P<body>.*?)\{%-?\s*enddefine\s*-?%\}',
    re.DOTALL,
)
_DIRECTIVE = re.compile(r"\{%-?\s*(?:define|enddefine)\b")


@dataclass(frozen=True)
class Fragment:
    """One named, compiled fragment and the source that defined it."""

    name: str
    source: str
    template: jinja2.Template


class TemplateSet:
    """
    An immutable collection of named fragments with a designated entry.

    Built by build(); read by render(). Safe to share between threads:
    jinja2 templates are reentrant and the fragment table never changes.
    """

    __slots__ = ("entry", "_fragments")

    def __init__(self, entry: str, fragments: Mapping[str, Fragment]):
        self.entry = entry
        self._fragments = MappingProxyType(dict(fragments))

    def __contains__(self, name: object) -> bool:
        return name in self._fragments

    def __len__(self) -> int:
        return len(self._fragments)

    def names(self) -> list[str]:
        return sorted(self._fragments)

    def fragment(self, name: str) -> Fragment:
        """
        Raises:
            TemplateRenderError: No fragment called `name` (missing_fragment set).
        """
        fragment = self._fragments.get(name)
        if fragment is None:
            raise TemplateRenderError(self.entry, missing_fragment=name)
        return fragment

    def __repr__(self) -> str:
        return f"TemplateSet(entry={self.entry!r}, fragments={self.names()!r})"


# =============================================================================
# ENVIRONMENT
# =============================================================================

def human_date(value: Optional[datetime]) -> str:
    """02 Jan 2026 at 15:04, in UTC; "" for None."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%d %b %Y at %H:%M")


@pass_context
def _invoke(context, name: str, data: Optional[Mapping[str, Any]] = None) -> Markup:
    """
    template("name") / template("name", data) inside a fragment.

    Renders the named fragment of the current set with the caller's data
    (or `data`) and returns the result as Markup.
    """
    template_set: TemplateSet = context[_SET_VAR]
    depth = context.get(_DEPTH_VAR, 0) + 1
    if depth > MAX_DEPTH:
        raise TemplateRenderError(
            name,
            cause=RecursionError(f"template() nested deeper than {MAX_DEPTH}"),
        )

    fragment = template_set.fragment(name)
    variables = dict(context.get_all() if data is None else data)
    variables[_SET_VAR] = template_set
    variables[_DEPTH_VAR] = depth
    return Markup(fragment.template.render(variables))


def create_environment() -> jinja2.Environment:
    """
    The Jinja2 environment every fragment is compiled in.

    - autoescape on for all templates
    - StrictUndefined: a misspelt variable is a render error, not ""
    - template() global, human_date filter
    """
    env = jinja2.Environment(
        autoescape=True,
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )
    env.globals["template"] = _invoke
    env.filters["human_date"] = human_date
    return env


_environment = create_environment()


# =============================================================================
# BUILD
# =============================================================================

def _read(source: Source) -> str:
    try:
        return Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateBuildError(str(source), e) from e


def _split(source: str, text: str) -> list[tuple[str, str]]:
    """
    Cut a source into (name, body) pairs.

    Raises:
        TemplateBuildError: Unterminated or nested define, stray enddefine.
    """
    fragments: list[tuple[str, str]] = []
    leftover: list[str] = []
    position = 0

    for match in _DEFINE.finditer(text):
        leftover.append(text[position:match.start()])
        body = match.group("body")
        if _DIRECTIVE.search(body):
            raise TemplateBuildError(source, message=f"nested define in {match.group('name')!r}")
        fragments.append((match.group("name"), body))
        position = match.end()
    leftover.append(text[position:])

    outside = "".join(leftover)
    if _DIRECTIVE.search(outside):
        raise TemplateBuildError(source, message="unterminated define or stray enddefine")

    if not fragments:
        return [(Path(source).name, text)] if text.strip() else []
    if outside.strip():
        # Text outside the define blocks is addressable by file name.
        fragments.append((Path(source).name, outside))
    return fragments


def _compile(source: str, name: str, body: str, env: jinja2.Environment) -> Fragment:
    try:
        template = env.from_string(body)
    except jinja2.TemplateSyntaxError as e:
        raise TemplateBuildError(source, e, message=f"{name}: line {e.lineno}: {e.message}") from e
    return Fragment(name=name, source=source, template=template)


def build(
    sources: Sequence[Source],
    environment: Optional[jinja2.Environment] = None,
) -> TemplateSet:
    """
    Parse `sources` in order into one TemplateSet.

    Args:
        sources: Template files. The first must define the entry fragment
            (its first fragment); later files add or override fragments.
        environment: Jinja2 environment to compile in (default: the
            module environment from create_environment()).

    Returns:
        The new TemplateSet.

    Raises:
        TemplateBuildError: A source is missing, unreadable or malformed,
            or `sources` is empty.
    """
    if not sources:
        raise TemplateBuildError("<none>", message="no template sources given")

    env = environment or _environment
    fragments: dict[str, Fragment] = {}
    entry: Optional[str] = None

    for source in sources:
        name = str(source)
        for fragment_name, body in _split(name, _read(source)):
            fragments[fragment_name] = _compile(name, fragment_name, body, env)
            if entry is None:
                entry = fragment_name
        if entry is None:
            raise TemplateBuildError(name, message="first template source defines nothing")

    return TemplateSet(entry, fragments)


# =============================================================================
# RENDER
# =============================================================================

def render(
    template_set: TemplateSet,
    entry: Optional[str] = None,
    data: Optional[Mapping[str, Any]] = None,
) -> bytes:
    """
    Execute `entry` (default: the set's entry) with `data`.

    Rendering never mutates the set; the same inputs always produce the
    same bytes.

    Raises:
        TemplateRenderError: The entry or an invoked fragment is missing
            (missing_fragment is set), or the template failed to evaluate.
    """
    name = entry or template_set.entry
    fragment = template_set.fragment(name)

    variables = dict(data or {})
    variables[_SET_VAR] = template_set
    variables[_DEPTH_VAR] = 0

    try:
        text = fragment.template.render(variables)
    except TemplateRenderError:
        raise
    except Exception as e:
        raise TemplateRenderError(name, cause=e) from e

    return text.encode("utf-8")
