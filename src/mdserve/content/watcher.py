"""Directory watch tree — recursive, self-expanding file watching.

The OS notification primitive watches one directory at a time, so the tree
keeps its own watch set: the served root plus every non-hidden subdirectory.
A single dispatch thread consumes raw events from an event source and

- registers directories created after startup (and their subdirectories),
- forwards writes to tracked files (Markdown by default) downstream,
  including newly created ones.

The event source is injectable.  ``WatchfilesSource`` is the production
implementation; tests drive the tree with a fake source.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol, TypeAlias

from watchfiles import Change

from mdserve._errors import WatchError
from mdserve.content.resolver import is_hidden

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

ChangeKind: TypeAlias = Literal["created", "written", "removed"]


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A filesystem change.

    Attributes:
        path: Absolute path of the changed entry.
        kind: What happened to it.

    """

    path: Path
    kind: ChangeKind


# Mapping from watchfiles Change enum to our kind literals.  watchfiles folds
# the first write of a new file into its ``added`` change, so "created" files
# with a tracked suffix are treated as written by the watch tree.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "created",
    Change.modified: "written",
    Change.deleted: "removed",
}


class EventSource(Protocol):
    """Where raw change events come from."""

    def add(self, directory: Path) -> None:
        """Start watching *directory* (non-recursively).

        Raises:
            OSError: If the directory cannot be watched.

        """
        ...

    def events(self) -> Iterator[ChangeEvent]:
        """Yield events until ``close()`` is called."""
        ...

    def close(self) -> None: ...


class _RestartableStop:
    """Stop flag for one watchfiles run: set on close or on watch-set growth."""

    def __init__(self, closed: threading.Event) -> None:
        self._closed = closed
        self.restart = False

    def is_set(self) -> bool:
        return self.restart or self._closed.is_set()


class WatchfilesSource:
    """Event source backed by ``watchfiles.watch(..., recursive=False)``.

    watchfiles cannot add paths to a running watcher, so when the watch set
    grows the current run is stopped and a new one is started over the
    enlarged set.  ``close()`` unblocks ``events()`` within one ``step``.

    """

    def __init__(self, *, debounce_ms: int = 300, step_ms: int = 100) -> None:
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._paths: set[Path] = set()
        self._closed = threading.Event()
        self._run_stop: _RestartableStop | None = None

    @property
    def paths(self) -> frozenset[Path]:
        return frozenset(self._paths)

    def add(self, directory: Path) -> None:
        if not directory.is_dir():
            raise NotADirectoryError(str(directory))
        if not os.access(directory, os.R_OK | os.X_OK):
            raise PermissionError(f"cannot read {directory}")
        self._paths.add(directory)
        if self._run_stop is not None:
            self._run_stop.restart = True

    def events(self) -> Iterator[ChangeEvent]:
        from watchfiles import watch

        while not self._closed.is_set():
            # Directories deleted since they were added cannot be watched.
            paths = sorted(p for p in self._paths if p.is_dir())
            if not paths:
                self._closed.wait(self._step_ms / 1000)
                continue

            self._run_stop = _RestartableStop(self._closed)
            try:
                for raw_changes in watch(
                    *paths,
                    watch_filter=None,
                    debounce=self._debounce_ms,
                    step=self._step_ms,
                    stop_event=self._run_stop,
                    recursive=False,
                    ignore_permission_denied=True,
                ):
                    for change_type, path_str in raw_changes:
                        yield ChangeEvent(path=Path(path_str), kind=_CHANGE_KIND_MAP[change_type])
                    if self._run_stop.restart:
                        break
            except FileNotFoundError as exc:
                # A watched directory vanished before the run started.
                logger.debug("restarting watcher: %s", exc)

    def close(self) -> None:
        self._closed.set()


class DirectoryWatchTree:
    """Owns the watch set of a served root and turns raw events into reloads.

    Args:
        root: Canonical served root.
        source: Event source the watch set is registered with.
        on_change: Called (from the dispatch thread) for every qualifying
            change.
        tracked_suffixes: Lower-case suffixes whose writes qualify.

    """

    def __init__(
        self,
        root: Path,
        source: EventSource,
        on_change: Callable[[ChangeEvent], None],
        *,
        tracked_suffixes: Iterable[str] = (".md",),
    ) -> None:
        self._root = root
        self._source = source
        self._on_change = on_change
        self._tracked = frozenset(s.lower() for s in tracked_suffixes)
        self._watch_set: set[Path] = set()
        self._prepared = False
        self._thread: threading.Thread | None = None

    @property
    def watch_set(self) -> frozenset[Path]:
        """Directories currently registered with the event source."""
        return frozenset(self._watch_set)

    @property
    def is_running(self) -> bool:
        """Whether the dispatch thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def prepare(self) -> None:
        """Register the root and its non-hidden subdirectories.

        Raises:
            WatchError: If the root itself cannot be watched.

        """
        if self._prepared:
            return
        try:
            self._source.add(self._root)
        except OSError as exc:
            msg = f"Cannot watch {self._root}: {exc}"
            raise WatchError(msg) from exc
        self._watch_set.add(self._root)
        self._register_tree(self._subdirectories(self._root))
        self._prepared = True
        logger.debug("watching %d directories under %s", len(self._watch_set), self._root)

    def start(self) -> None:
        """Prepare if needed and start the dispatch thread."""
        if self.is_running:
            return
        self.prepare()
        self._thread = threading.Thread(
            target=self._dispatch_loop,
            name="mdserve-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Close the event source and wait for the dispatch thread."""
        self._source.close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("watcher thread did not stop within %.1fs", timeout)
            self._thread = None
        self._watch_set.clear()
        self._prepared = False

    def handle(self, event: ChangeEvent) -> None:
        """Process one raw event: expand the watch set or emit a change."""
        path = event.path
        if is_hidden(path.name):
            return

        if event.kind == "created":
            try:
                is_dir = path.is_dir() and not path.is_symlink()
                is_file = not is_dir and path.is_file()
            except OSError as exc:
                logger.debug("skipping %s: %s", path, exc)
                return
            if is_dir:
                added = self._register_tree([path])
                # Files written before the new directory was watched.
                for directory in added:
                    for md_file in self._tracked_files(directory):
                        self._emit(ChangeEvent(path=md_file, kind="written"))
            elif is_file and path.suffix.lower() in self._tracked:
                self._emit(ChangeEvent(path=path, kind="written"))
            return

        if event.kind == "removed":
            # Forget the subtree so a directory recreated under the same name
            # is registered again.
            gone = {d for d in self._watch_set if d == path or path in d.parents}
            self._watch_set -= gone
            return

        if event.kind == "written" and path.suffix.lower() in self._tracked:
            self._emit(event)

    def _register_tree(self, start: Iterable[Path]) -> list[Path]:
        """Register directories breadth-first from an explicit worklist.

        Returns the directories newly added to the watch set.  A directory
        that cannot be watched is logged and skipped along with its subtree.

        """
        added: list[Path] = []
        pending: deque[Path] = deque(start)
        while pending:
            directory = pending.popleft()
            if directory in self._watch_set:
                continue
            try:
                self._source.add(directory)
            except OSError as exc:
                logger.warning("cannot watch %s: %s", directory, exc)
                continue
            self._watch_set.add(directory)
            added.append(directory)
            pending.extend(self._subdirectories(directory))
        return added

    def _subdirectories(self, directory: Path) -> list[Path]:
        try:
            with os.scandir(directory) as it:
                return sorted(
                    Path(entry.path)
                    for entry in it
                    if not is_hidden(entry.name) and entry.is_dir(follow_symlinks=False)
                )
        except OSError as exc:
            logger.debug("cannot list %s: %s", directory, exc)
            return []

    def _tracked_files(self, directory: Path) -> list[Path]:
        try:
            with os.scandir(directory) as it:
                return sorted(
                    Path(entry.path)
                    for entry in it
                    if not is_hidden(entry.name)
                    and entry.is_file()
                    and Path(entry.name).suffix.lower() in self._tracked
                )
        except OSError as exc:
            logger.debug("cannot list %s: %s", directory, exc)
            return []

    def _emit(self, event: ChangeEvent) -> None:
        logger.debug("changed: %s", event.path)
        try:
            self._on_change(event)
        except Exception:
            logger.exception("change handler failed for %s", event.path)

    def _dispatch_loop(self) -> None:
        """Background thread: drain the event source."""
        try:
            for event in self._source.events():
                self.handle(event)
        except Exception:
            logger.exception("file watcher stopped; live reload disabled")
