"""Markdown to Confluence storage format conversion."""

from .common import escape_cdata, markdown_to_confluence_lang
from .storage_format import (
    PageRenderer,
    StorageFormatRenderer,
    code_macro,
    page_link_open,
)

__all__ = [
    "PageRenderer",
    "StorageFormatRenderer",
    "code_macro",
    "escape_cdata",
    "markdown_to_confluence_lang",
    "page_link_open",
]
