"""Shared test fixtures for mdserve."""

from __future__ import annotations

import os
import queue
import threading
from pathlib import Path

import pytest

from mdserve.config import ServeConfig
from mdserve.content.watcher import ChangeEvent, ChangeKind


@pytest.fixture
def served_root(tmp_path: Path) -> Path:
    """Create a small documentation tree to serve.

    Layout::

        site/
          a.md               "# Alpha"
          Makefile
          notes/b.md
          docs/guide.md      "# Guide"
          img/logo.png
          My Notes/c d.md
          .hidden/secret.md
        outside.md           (sibling of the served root)

    """
    root = tmp_path / "site"
    root.mkdir()
    (root / "a.md").write_text("# Alpha\n\nHello *world*.\n")
    (root / "Makefile").write_text("all:\n\techo hi\n")

    notes = root / "notes"
    notes.mkdir()
    (notes / "b.md").write_text("# Bee\n")

    docs = root / "docs"
    docs.mkdir()
    (docs / "guide.md").write_text("# Guide\n\nRead me.\n")

    img = root / "img"
    img.mkdir()
    (img / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")

    spaced = root / "My Notes"
    spaced.mkdir()
    (spaced / "c d.md").write_text("no heading here\n")

    hidden = root / ".hidden"
    hidden.mkdir()
    (hidden / "secret.md").write_text("# Secret\n")

    (tmp_path / "outside.md").write_text("# Outside\n")

    return root.resolve()


@pytest.fixture
def config(served_root: Path) -> ServeConfig:
    """A ServeConfig rooted at the served tree, live reload off."""
    return ServeConfig(root=served_root, live_reload=False)


class FakeSource:
    """In-memory event source: tests push events, the watch tree drains them."""

    def __init__(self, fail_on: set[Path] | None = None) -> None:
        self.added: list[Path] = []
        self.fail_on = fail_on or set()
        self.closed = threading.Event()
        self._events: queue.Queue[ChangeEvent | None] = queue.Queue()

    def add(self, directory: Path) -> None:
        if directory in self.fail_on:
            raise PermissionError(f"denied: {directory}")
        self.added.append(directory)

    def events(self):  # type: ignore[no-untyped-def]
        while True:
            event = self._events.get()
            if event is None:
                return
            yield event

    def close(self) -> None:
        self.closed.set()
        self._events.put(None)

    def emit(self, path: Path, kind: ChangeKind) -> None:
        self._events.put(ChangeEvent(path=path, kind=kind))


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def undecodable_markdown(served_root: Path) -> Path:
    """A Markdown file in notes/ whose name is not valid UTF-8 (``caf\\xe9.md``)."""
    path = served_root / "notes" / os.fsdecode(b"caf\xe9.md")
    try:
        path.write_text("# Cafe\n")
    except (OSError, UnicodeEncodeError):
        pytest.skip("filesystem rejects non-UTF-8 file names")
    return path
