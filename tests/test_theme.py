"""Tests for mdserve.theme — bundled theme and fallback chain."""

from __future__ import annotations

from pathlib import Path

from mdserve.config import ServeConfig
from mdserve.theme import (
    _bundled_theme_path,
    create_environment,
    get_template_dirs,
    stylesheet_path,
)


# ---------------------------------------------------------------------------
# Bundled theme structure
# ---------------------------------------------------------------------------


class TestBundledTheme:
    """Verify the bundled default theme has all required files."""

    def test_required_templates_present(self) -> None:
        templates = _bundled_theme_path() / "templates"
        for name in ("page.html", "directory.html", "error.html"):
            assert (templates / name).is_file(), f"Missing template: {name}"

    def test_stylesheet_present(self) -> None:
        assert (_bundled_theme_path() / "assets" / "style.css").is_file()


# ---------------------------------------------------------------------------
# Fallback chain
# ---------------------------------------------------------------------------


class TestFallbackChain:
    """User template_dir first, bundled theme last."""

    def test_bundled_only(self, tmp_path: Path) -> None:
        dirs = get_template_dirs(ServeConfig(root=tmp_path))
        assert dirs == [_bundled_theme_path() / "templates"]

    def test_user_dir_first(self, tmp_path: Path) -> None:
        theme = tmp_path / "theme"
        dirs = get_template_dirs(ServeConfig(root=tmp_path, template_dir=theme))
        assert dirs[0] == theme.resolve()
        assert dirs[-1] == _bundled_theme_path() / "templates"

    def test_stylesheet_falls_back(self, tmp_path: Path) -> None:
        theme = tmp_path / "theme"
        theme.mkdir()
        config = ServeConfig(root=tmp_path, template_dir=theme)
        assert stylesheet_path(config) == _bundled_theme_path() / "assets" / "style.css"

    def test_user_stylesheet(self, tmp_path: Path) -> None:
        theme = tmp_path / "theme"
        theme.mkdir()
        (theme / "style.css").write_text("/* mine */")
        config = ServeConfig(root=tmp_path, template_dir=theme)
        assert stylesheet_path(config) == theme.resolve() / "style.css"

    def test_environment_autoescapes(self, tmp_path: Path) -> None:
        env = create_environment(ServeConfig(root=tmp_path))
        html = env.get_template("error.html").render(
            status=404, reason="Not Found", path="/<x>", message="", stylesheet="/assets/style.css"
        )
        assert "/&lt;x&gt;" in html
