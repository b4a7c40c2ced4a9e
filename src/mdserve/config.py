"""mdserve configuration.

ServeConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ServeConfig:
    """Configuration for an mdserve session.

    Attributes:
        root: The served root directory.  Always resolved to an absolute,
              canonical path on construction so containment checks compare
              like with like.
        host: Bind address.  Localhost only unless explicitly overridden.
        port: Bind port (0 = first free port from 8080).
        file: Optional entry Markdown file, relative to root.
        live_reload: Watch the tree and push reload tokens to browsers.
        reload_endpoint: URL path of the live-reload WebSocket.
        assets_prefix: URL prefix for asset passthrough.
        template_dir: Directory whose templates and ``style.css`` override
            the bundled theme.
        tracked_suffixes: File suffixes whose writes trigger a reload.
        debounce_ms: watchfiles debounce window.
        step_ms: watchfiles polling step; bounds watcher shutdown latency.
        write_timeout: Seconds allowed for one live-reload client write.
        verbose: Enable debug logging.

    """

    root: Path = field(default_factory=Path.cwd)
    host: str = "localhost"
    port: int = 0
    file: str | None = None
    live_reload: bool = True
    reload_endpoint: str = "/livereload"
    assets_prefix: str = "/assets/"
    template_dir: Path | None = None
    tracked_suffixes: tuple[str, ...] = (".md",)
    debounce_ms: int = 300
    step_ms: int = 100
    write_timeout: float = 5.0
    verbose: bool = False

    def __post_init__(self) -> None:
        # watchfiles reports canonical absolute paths and the resolver
        # canonicalizes candidates, so the root must be canonical too.
        object.__setattr__(self, "root", Path(self.root).resolve())
        if self.template_dir is not None:
            object.__setattr__(self, "template_dir", Path(self.template_dir).resolve())
        suffixes = tuple(
            s.lower() if s.startswith(".") else f".{s.lower()}"
            for s in self.tracked_suffixes
        )
        object.__setattr__(self, "tracked_suffixes", suffixes)

    @property
    def entry_path(self) -> str:
        """URL path of the entry page (``/`` when no entry file is set)."""
        if not self.file:
            return "/"
        return "/" + self.file.lstrip("/")
