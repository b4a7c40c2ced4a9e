"""Directory listings, breadcrumbs and page titles."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from mdserve.content.resolver import MARKDOWN_SUFFIX, encode_url_path, is_hidden


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """A file or directory shown in an index page.

    Attributes:
        name: Display name (``..`` for the parent link).
        href: Absolute, segment-encoded URL path.
        is_dir: True for directories (including the parent link).
        is_markdown: True for ``.md`` files.

    """

    name: str
    href: str
    is_dir: bool
    is_markdown: bool = False


@dataclass(frozen=True, slots=True)
class Breadcrumb:
    href: str
    text: str


def list_directory(root: Path, directory: Path) -> list[DirectoryEntry]:
    """List the directories and Markdown files of *directory*.

    Hidden entries are skipped.  Directories come first, then files, each
    sorted by name.  A ``..`` entry is prepended unless *directory* is the
    served root.

    Raises:
        OSError: If the directory cannot be read.

    """
    dirs: list[DirectoryEntry] = []
    files: list[DirectoryEntry] = []

    with os.scandir(directory) as it:
        for entry in it:
            if is_hidden(entry.name):
                continue
            try:
                entry_is_dir = entry.is_dir()
            except OSError:
                continue
            is_markdown = not entry_is_dir and entry.name.lower().endswith(MARKDOWN_SUFFIX)
            if not entry_is_dir and not is_markdown:
                continue

            rel = os.path.relpath(entry.path, root)
            item = DirectoryEntry(
                name=display_name(entry.name),
                href=encode_url_path(rel, directory=entry_is_dir),
                is_dir=entry_is_dir,
                is_markdown=is_markdown,
            )
            (dirs if entry_is_dir else files).append(item)

    entries = sorted(dirs, key=lambda e: e.name) + sorted(files, key=lambda e: e.name)

    if directory != root:
        parent_rel = os.path.relpath(directory.parent, root)
        entries.insert(
            0,
            DirectoryEntry(name="..", href=encode_url_path(parent_rel, directory=True), is_dir=True),
        )

    return entries


def create_breadcrumbs(rel_path: str, *, is_file: bool = False) -> list[Breadcrumb]:
    """Build breadcrumb links for a root-relative path.

    The first crumb always points at the root.  For files, the final crumb
    is the file itself with the ``.md`` extension dropped from its text.

    """
    crumbs = [Breadcrumb(href="/", text="./")]
    rel = PurePosixPath(rel_path.replace(os.sep, "/"))
    parts = [p for p in rel.parts if p not in ("", ".", "/")]
    if not parts:
        return crumbs

    dir_parts = parts[:-1] if is_file else parts
    for i, part in enumerate(dir_parts):
        crumbs.append(
            Breadcrumb(
                href=encode_url_path("/".join(dir_parts[: i + 1]), directory=True),
                text=display_name(part) + "/",
            )
        )

    if is_file:
        crumbs.append(
            Breadcrumb(
                href=encode_url_path("/".join(parts)),
                text=display_name(strip_markdown_suffix(parts[-1])),
            )
        )

    return crumbs


def display_name(name: str) -> str:
    """Make a file name printable: undecodable bytes become U+FFFD."""
    return os.fsencode(name).decode("utf-8", errors="replace")


def strip_markdown_suffix(name: str) -> str:
    if name.lower().endswith(MARKDOWN_SUFFIX):
        return name[: -len(MARKDOWN_SUFFIX)]
    return name


def extract_title(content: str, filename: str) -> str:
    """Return the text of the first level-1 heading, else the file stem."""
    for line in content.splitlines():
        line = line.strip()
        if line.startswith("# "):
            return line[2:].strip()
    return display_name(strip_markdown_suffix(filename))


def directory_title(root: Path, directory: Path) -> str:
    return "Index" if directory == root else display_name(directory.name)
