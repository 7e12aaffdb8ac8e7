"""Markdown to Confluence storage format using mistune AST rendering.

Besides plain HTML the renderer rewrites three kinds of tokens:

- fenced code: diagram languages become ``Graph`` attachments, everything
  else a ``code`` macro;
- images: local files become ``Image`` attachments;
- links: links to other published pages become ``ac:link`` page links.
"""

from collections.abc import Mapping
from html import unescape
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import mistune
from mistune.util import escape, striptags

from ..config import Config
from ..config_schema import GraphConfig
from ..errors import ValidationError
from ..models import Graph, GraphBackend, Image, LocalPage
from ..validators import is_local_reference, safe_path
from .common import escape_cdata, markdown_to_confluence_lang

PLUGINS = ["table", "strikethrough"]

PAGE_LINK_CLOSE = "</ac:link-body></ac:link>"


def code_macro(language: str, content: str) -> str:
    """Confluence ``code`` macro holding ``content`` verbatim."""
    if not content:
        return ""
    parameter = ""
    if language:
        parameter = f'<ac:parameter ac:name="language">{escape(language)}</ac:parameter>'
    return (
        f'<ac:structured-macro ac:name="code">{parameter}'
        f"<ac:plain-text-body><![CDATA[{escape_cdata(content)}]]></ac:plain-text-body>"
        "</ac:structured-macro>\n"
    )


def page_link_open(title: str) -> str:
    return (
        '<ac:link ac:card-appearance="inline">'
        f'<ri:page ri:content-title="{escape(title)}" /><ac:link-body>'
    )


class StorageFormatRenderer(mistune.HTMLRenderer):
    """Renders the markdown of one page, collecting its attachments.

    A renderer instance is bound to a single ``LocalPage``: graphs and images
    found while rendering are appended to ``page.attachments`` and graph
    sources are written next to the page's markdown file.
    """

    def __init__(
        self,
        page: LocalPage,
        graphs: Mapping[str, GraphConfig],
        page_refs: Mapping[str, str],
        content_root: Path,
    ):
        super().__init__(escape=False)
        self.page = page
        self.graphs = graphs
        self.page_refs = page_refs
        self.content_root = content_root
        self._graph_count = 0

    # ------------------------------------------------------------------
    # Fenced code
    # ------------------------------------------------------------------

    def block_code(self, code: str, info: str | None = None) -> str:
        language = info.split()[0] if info and info.strip() else ""
        content = code.strip("\n")
        if not content.strip():
            return ""

        graph = self.graphs.get(language)
        if graph is not None:
            return self._graph(graph, content)
        return code_macro(markdown_to_confluence_lang(language), content)

    def _graph(self, graph: GraphConfig, content: str) -> str:
        if graph.backend is GraphBackend.NONE:
            return code_macro(graph.diagram_type, content)
        if not self.page.path:
            raise ValidationError(
                f'Page "{self.page.title}" has no source file to store graphs next to'
            )

        self._graph_count += 1
        alt = f"graph_{self._graph_count}"
        source = self.content_root / self.page.path
        target = source.with_name(f"{source.stem}_{alt}{graph.extension}")
        target.write_text(content + "\n", encoding="utf-8")

        attachment = Graph(
            path=target.relative_to(self.content_root).as_posix(),
            diagram_type=graph.diagram_type,
            backend=graph.backend,
            alt=alt,
        )
        self.page.attachments.append(attachment)
        return attachment.markup

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def image(self, text: str, url: str, title: str | None = None) -> str:
        if is_local_reference(url):
            path = safe_path(unquote(url), self.page.path, self.content_root)
            if path:
                attachment = Image(path, unescape(striptags(text)))
                if all(image.path != path for image in self.page.images):
                    self.page.attachments.append(attachment)
                return attachment.markup
        return super().image(text, url, title)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def _page_title(self, url: str) -> str | None:
        """Title of the published page ``url`` points to, if any."""
        if not is_local_reference(url):
            return None
        path = safe_path(unquote(url), self.page.path, self.content_root)
        if path is None:
            return None
        return self.page_refs.get(path)

    def render_token(self, token: dict[str, Any], state) -> str:
        """Replace links to published pages, open and close markup together."""
        if token["type"] == "link":
            title = self._page_title(token["attrs"]["url"])
            if title is not None:
                text = self.render_tokens(token["children"], state)
                return page_link_open(title) + text + PAGE_LINK_CLOSE
        return super().render_token(token, state)


class PageRenderer:
    """Renders ``LocalPage`` markdown to storage format.

    Args:
        graphs: Diagram languages by fenced-code language tag.
        page_refs: Title of every page of the run by source path.
        content_root: Directory page paths are relative to.
    """

    def __init__(
        self,
        graphs: Mapping[str, GraphConfig],
        page_refs: Mapping[str, str],
        content_root: Path,
    ):
        self.graphs = dict(graphs)
        self.page_refs = dict(page_refs)
        self.content_root = content_root

    @classmethod
    def from_config(cls, config: Config, page_refs: Mapping[str, str]) -> "PageRenderer":
        return cls(config.graphs, page_refs, config.content_root)

    def render(self, page: LocalPage) -> LocalPage:
        """
        Populate ``page.html`` and ``page.attachments`` from its markdown.

        Pages without a source file keep their current ``html``.
        """
        markdown = page.load_markdown(self.content_root)
        if markdown is None:
            return page

        page.attachments = []
        renderer = StorageFormatRenderer(
            page, self.graphs, self.page_refs, self.content_root
        )
        parser = mistune.create_markdown(renderer=renderer, plugins=PLUGINS)
        html: str = parser(markdown)  # type: ignore[assignment]
        page.html = html + self.footer(page)
        return page

    @staticmethod
    def footer(page: LocalPage) -> str:
        """Link back to the markdown source, when its URL is known."""
        url = page.meta.source_url
        if not url:
            return ""
        return (
            '<hr /><p style="text-align: right;">'
            f'<a href="{escape(url)}">Edit on GitHub</a> ✍️</p>\n'
        )
