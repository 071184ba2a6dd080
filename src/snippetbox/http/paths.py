"""
Request path canonicalization.

The router never matches the path a client sent; it matches the canonical
form of it:

    /snippet//view          →  /snippet/view
    /snippet/./view         →  /snippet/view
    /static/css/../img/a    →  /static/img/a
    /static/                →  /static/          (trailing slash kept)
    /..                     →  RouteNotFound     (escapes the root)

canonicalize(canonicalize(p)) == canonicalize(p) for every accepted p.
"""

from ..errors import RouteNotFound


def canonicalize(path: str) -> str:
    """
    Resolve "." and ".." segments and collapse repeated slashes.

    Args:
        path: A percent-decoded absolute path.

    Returns:
        The canonical path. A trailing slash on the input is preserved
        (except that "/" stays "/").

    Raises:
        RouteNotFound: The path is empty, relative, contains a NUL byte, or
            a ".." segment would climb above the root.
    """
    if not path.startswith("/"):
        raise RouteNotFound(f"not an absolute path: {path!r}")
    if "\x00" in path:
        raise RouteNotFound("NUL byte in path")

    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise RouteNotFound(f"path escapes the root: {path!r}")
            segments.pop()
            continue
        segments.append(segment)

    canonical = "/" + "/".join(segments)
    if path.endswith("/") and canonical != "/":
        canonical += "/"
    return canonical


def is_canonical(path: str) -> bool:
    """True when `path` is already in canonical form."""
    try:
        return canonicalize(path) == path
    except RouteNotFound:
        return False
