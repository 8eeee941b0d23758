"""Markdown to HTML rendering."""

from __future__ import annotations

import logging

import markdown

from specter.exceptions import RenderError

logger = logging.getLogger(__name__)

_EXTENSIONS = ("fenced_code", "tables", "sane_lists")


def render_markdown(text: str) -> str:
    """Render markdown to an HTML fragment.

    Uses a fresh converter per call so no state leaks between documents.
    Raises RenderError if conversion fails.
    """
    if not text:
        return ""
    converter = markdown.Markdown(extensions=list(_EXTENSIONS), output_format="html")
    try:
        html = converter.convert(text)
    except Exception as exc:  # converter and extension failures are not typed
        logger.debug("Markdown conversion failed", exc_info=True)
        msg = f"converting markdown: {exc}"
        raise RenderError(msg) from exc
    return html
