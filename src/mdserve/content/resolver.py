"""Path resolver — maps request paths to served filesystem targets.

Classifies a URL path as a directory index, a Markdown page (with implicit
``.md`` resolution), a static asset, a redirect to the trailing-slash form of
a directory, or nothing at all.

Containment is checked on the canonical candidate path every time, after
joining and symlink resolution, so traversal sequences hidden in encoded or
linked paths cannot escape the served root.

Thread Safety:
    Pure functions over the filesystem.  No state.

"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias
from urllib.parse import quote

MARKDOWN_SUFFIX = ".md"


@dataclass(frozen=True, slots=True)
class Index:
    """An existing directory inside the served root."""

    path: Path


@dataclass(frozen=True, slots=True)
class Markdown:
    """A Markdown file inside the served root."""

    path: Path


@dataclass(frozen=True, slots=True)
class Asset:
    """Any other regular file inside the served root."""

    path: Path


@dataclass(frozen=True, slots=True)
class Redirect:
    """A directory requested without its trailing slash."""

    location: str


@dataclass(frozen=True, slots=True)
class Forbidden:
    """The candidate path escapes the root or crosses a hidden segment."""


@dataclass(frozen=True, slots=True)
class NotFound:
    """Nothing valid resolves."""


ResolvedTarget: TypeAlias = Index | Markdown | Asset | Redirect | Forbidden | NotFound


def is_hidden(name: str) -> bool:
    """Return True for dot-prefixed names (``.git``, ``.env``...)."""
    return name.startswith(".")


def encode_url_path(rel: str, *, directory: bool = False) -> str:
    """Build an absolute URL path from a root-relative path.

    Each segment is percent-encoded on its own so that separators are
    preserved and names containing ``#``, ``?`` or spaces stay linkable.
    """
    # fsencode keeps undecodable bytes (surrogate escapes) as raw octets.
    parts = [quote(os.fsencode(p), safe="") for p in rel.replace(os.sep, "/").split("/") if p and p != "."]
    if not parts:
        return "/"
    url = "/" + "/".join(parts)
    return url + "/" if directory else url


def contained_path(root: Path, candidate: Path) -> Path | None:
    """Canonicalize *candidate* and return it if it lies inside *root*.

    Returns None when the canonical path is outside root, is root itself,
    or passes through a hidden segment.  *root* must already be canonical.

    """
    try:
        canonical = candidate.resolve()
        rel = canonical.relative_to(root)
    except (OSError, ValueError, RuntimeError):
        return None
    if not rel.parts:
        return None
    if rel.parts[0] == ".." or any(is_hidden(part) for part in rel.parts):
        return None
    return canonical


def _normalize(request_path: str) -> str | None:
    """Turn a URL path into a clean root-relative path ("" for the root).

    Only empty and ``.`` segments are dropped here; ``..`` is left in place
    for the containment check to reject after joining.
    """
    if "\x00" in request_path:
        return None
    segments = [s for s in request_path.replace("\\", "/").split("/") if s and s != "."]
    return "/".join(segments)


def resolve(root: Path, request_path: str) -> ResolvedTarget:
    """Classify *request_path* against the served *root*.

    Args:
        root: Canonical absolute served root.
        request_path: Decoded URL path (e.g. ``/docs/guide``).

    Returns:
        The resolved target.  OS errors while probing are reported as
        ``NotFound``; escapes and hidden paths as ``Forbidden``.

    """
    rel = _normalize(request_path)
    if rel is None:
        return NotFound()
    if not rel:
        return Index(root)

    candidate = root / rel
    target = contained_path(root, candidate)
    if target is None:
        return Forbidden()

    try:
        if target.is_dir():
            if not request_path.endswith("/"):
                return Redirect(encode_url_path(rel, directory=True))
            return Index(target)

        # The suffix comes from the requested name, not the symlink target.
        suffix = candidate.suffix
        if suffix.lower() == MARKDOWN_SUFFIX and target.is_file():
            return Markdown(target)

        if not suffix:
            with_ext = contained_path(root, candidate.with_name(candidate.name + MARKDOWN_SUFFIX))
            if with_ext is not None and with_ext.is_file():
                return Markdown(with_ext)

        if target.is_file():
            return Asset(target)
    except OSError:
        return NotFound()

    return NotFound()
