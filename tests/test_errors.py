"""Tests for mdserve._errors."""

from mdserve._errors import (
    ConfigError,
    ContentError,
    MdserveError,
    RenderError,
    WatchError,
)


class TestErrorHierarchy:
    """All mdserve errors inherit from MdserveError."""

    def test_base_is_exception(self) -> None:
        assert issubclass(MdserveError, Exception)

    def test_config_error_inherits(self) -> None:
        assert issubclass(ConfigError, MdserveError)

    def test_render_error_is_content_error(self) -> None:
        assert issubclass(RenderError, ContentError)
        assert issubclass(ContentError, MdserveError)

    def test_watch_error_inherits(self) -> None:
        assert issubclass(WatchError, MdserveError)

    def test_catch_all_mdserve_errors(self) -> None:
        for error_cls in (ConfigError, ContentError, RenderError, WatchError):
            try:
                raise error_cls("test")
            except MdserveError:
                pass
