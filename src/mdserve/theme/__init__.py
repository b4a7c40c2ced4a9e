"""mdserve theme loader — fallback chain for templates and the stylesheet.

A user template directory (``template_dir``) takes priority.  When a
template or ``style.css`` is not found there, the bundled default theme
fills the gap.

Thread Safety:
    The Jinja2 environment is built once and only read afterwards.  Safe to
    render from concurrent requests.

"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, select_autoescape

if TYPE_CHECKING:
    from mdserve.config import ServeConfig

STYLESHEET_NAME = "style.css"


def _bundled_theme_path() -> Path:
    """Return the absolute path to the bundled default theme."""
    return Path(__file__).parent


def get_template_dirs(config: ServeConfig) -> list[Path]:
    """Return template directories in priority order.

    Returns:
        ``[user_template_dir, bundled_templates]`` (user entry only when
        configured).

    """
    dirs: list[Path] = []
    if config.template_dir is not None:
        dirs.append(config.template_dir)
    dirs.append(_bundled_theme_path() / "templates")
    return dirs


def stylesheet_path(config: ServeConfig) -> Path:
    """Return the stylesheet to serve: the user's if present, else bundled."""
    if config.template_dir is not None:
        user_css = config.template_dir / STYLESHEET_NAME
        if user_css.is_file():
            return user_css
    return _bundled_theme_path() / "assets" / STYLESHEET_NAME


def create_environment(config: ServeConfig) -> Environment:
    """Build the Jinja2 environment over the template fallback chain."""
    return Environment(
        loader=ChoiceLoader([FileSystemLoader(str(d)) for d in get_template_dirs(config)]),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
