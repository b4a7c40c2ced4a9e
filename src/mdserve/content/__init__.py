"""Content layer — request resolution, listings, rendering and watching.

Maps URL paths to files under the served root, renders Markdown pages and
directory indexes, and tracks the directory tree for changes.
"""

from mdserve.content.resolver import ResolvedTarget, resolve
from mdserve.content.router import ContentRouter
from mdserve.content.watcher import ChangeEvent, DirectoryWatchTree, WatchfilesSource

__all__ = [
    "ChangeEvent",
    "ContentRouter",
    "DirectoryWatchTree",
    "ResolvedTarget",
    "WatchfilesSource",
    "resolve",
]
