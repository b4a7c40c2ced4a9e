"""Markdown renderer — Python-Markdown with GitHub-flavoured extensions.

Each call builds a fresh converter: ``markdown.Markdown`` instances carry
per-document state, so sharing one across request threads is unsafe.
"""

from __future__ import annotations

import markdown

from mdserve._errors import RenderError

# tables + fenced code approximate GFM; toc gives headings stable ids;
# nl2br keeps single newlines as hard wraps.
EXTENSIONS: tuple[str, ...] = (
    "tables",
    "fenced_code",
    "sane_lists",
    "toc",
    "nl2br",
)


def render_markdown(source: bytes) -> bytes:
    """Convert Markdown bytes to an HTML fragment (UTF-8 bytes).

    Raises:
        RenderError: If the source is not valid UTF-8 or conversion fails.

    """
    try:
        text = source.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        msg = f"Markdown source is not valid UTF-8: {exc}"
        raise RenderError(msg) from exc

    try:
        html = markdown.markdown(text, extensions=list(EXTENSIONS), output_format="xhtml")
    except Exception as exc:
        msg = f"Failed to render markdown: {exc}"
        raise RenderError(msg) from exc

    return html.encode("utf-8")
