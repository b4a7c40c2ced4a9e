"""Startup banner — status output on stderr.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mdserve.config import ServeConfig


# ---------------------------------------------------------------------------
# ANSI helpers: respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


def format_banner(config: ServeConfig, *, port: int, live_reload: bool) -> str:
    """Build the banner text for a resolved config and bound port."""
    from mdserve import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}mdserve{_RESET} {_DIM}v{__version__}{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} serving {_DIM}{config.root}{_RESET}",
    ]

    if config.file:
        lines.append(f"  {_DIM}├─{_RESET} entry file: {config.file}")

    if live_reload:
        lines.append(
            f"  {_DIM}└─{_RESET} {_GREEN}live reload{_RESET} "
            f"on {_DIM}{config.reload_endpoint}{_RESET}"
        )
    else:
        lines.append(f"  {_DIM}└─{_RESET} {_YELLOW}live reload off{_RESET}")

    url = f"http://{config.host}:{port}{config.entry_path}"
    lines.append("")
    lines.append(f"  {_clickable_url(url)}")
    lines.append("")
    lines.append(f"  {_DIM}Press Ctrl+C to stop{_RESET}")
    lines.append("")
    return "\n".join(lines)


def print_banner(config: ServeConfig, *, port: int, live_reload: bool) -> None:
    """Print the startup banner to stderr."""
    print(format_banner(config, port=port, live_reload=live_reload), file=sys.stderr)
