"""mdserve error hierarchy.

All mdserve-specific errors inherit from MdserveError for easy catching.
"""


class MdserveError(Exception):
    """Base error for all mdserve operations."""


class ConfigError(MdserveError):
    """Invalid or missing configuration."""


class ContentError(MdserveError):
    """Error while reading or routing served content."""


class RenderError(ContentError):
    """Markdown could not be converted to HTML."""


class WatchError(MdserveError):
    """The file watcher could not be set up."""