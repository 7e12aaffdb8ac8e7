"""Build the list of pages to publish from an MkDocs project.

Reads ``mkdocs.yml`` (``nav``, ``repo_url``, ``site_name``), resolves every
nav entry under ``docs/`` and hashes its markdown. ``README.md`` at the
project root becomes the home page; without one a page holding only the
site name is published instead.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from mistune.util import escape

from .config import Config
from .errors import ValidationError
from .models import LocalPage, Meta
from .validators import is_local_reference, safe_path

logger = logging.getLogger(__name__)

MKDOCS_YML = "mkdocs.yml"
README_MD = "README.md"
DOCS_DIR = "docs"


class MkDocsLoader(yaml.SafeLoader):
    """SafeLoader that reads tags it does not know as plain values.

    ``mkdocs.yml`` files commonly carry ``!!python/name:`` and ``!ENV`` tags
    that only MkDocs itself can resolve.
    """


def _unknown_tag(loader: MkDocsLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    return loader.construct_mapping(node)  # type: ignore[arg-type]


MkDocsLoader.add_multi_constructor("!", _unknown_tag)
MkDocsLoader.add_multi_constructor("tag:yaml.org,2002:python/", _unknown_tag)


@dataclass
class SyncContext:
    """Everything a run needs to know about the local documentation.

    Attributes:
        site_name: Site name, the title of the home page.
        repo: Repository URL recorded on every page.
        pages: Pages of the nav, in nav order.
        home: README page, or a synthetic page without source file.
        page_refs: Title of every page (home included) by source path.
    """

    site_name: str
    repo: str
    pages: list[LocalPage]
    home: LocalPage
    page_refs: dict[str, str]

    @property
    def readme(self) -> LocalPage | None:
        return self.home if self.home.path else None


def file_hash(path: Path) -> str:
    """Hex SHA-256 digest of a file's contents."""
    return hashlib.sha256(path.read_bytes()).hexdigest()


def load_mkdocs(root: Path) -> dict[str, Any]:
    """
    Read the relevant settings of ``mkdocs.yml``.

    Raises:
        ValidationError: If ``nav``, ``repo_url`` or ``site_name`` is missing.
    """
    mkdocs_file = root / MKDOCS_YML
    with open(mkdocs_file, "r", encoding="utf-8") as fh:
        data = yaml.load(fh, Loader=MkDocsLoader) or {}  # noqa: S506

    nav = data.get("nav")
    repo_url = data.get("repo_url")
    site_name = data.get("site_name")
    if not isinstance(nav, list):
        raise ValidationError(f"nav is missing from your {MKDOCS_YML} file")
    if not isinstance(repo_url, str) or not repo_url.strip():
        raise ValidationError(f"repo_url is missing from your {MKDOCS_YML} file")
    if not isinstance(site_name, str) or not site_name.strip():
        raise ValidationError(f"site_name is missing from your {MKDOCS_YML} file")
    return {"nav": nav, "repo_url": repo_url.strip(), "site_name": site_name.strip()}


class _PageFactory:
    def __init__(self, config: Config, repo: str):
        self.config = config
        self.repo = repo
        self.root = config.content_root.resolve()

    def meta(self, path: str | None = None, sha: str | None = None) -> Meta:
        return Meta(
            repo=self.repo,
            path=path,
            sha=sha,
            git_ref=self.config.git_ref,
            git_sha=self.config.git_sha,
            publisher_version=self.config.publisher_version,
        )

    def page(
        self, title: str, target: str, prefix: str, required: bool = True
    ) -> LocalPage | None:
        path = safe_path(target, None, self.root)
        if path is None or not (self.root / path).is_file():
            if required:
                logger.warning('Page "%s" not found at "%s"', title, target)
            return None
        sha = file_hash(self.root / path)
        return LocalPage(f"{prefix} {title}".strip(), self.meta(path, sha))

    def traverse(self, nav: list[Any], pages: list[LocalPage]) -> list[LocalPage]:
        for item in nav:
            if not isinstance(item, dict) or not item:
                raise ValidationError(f"No title for {item}")
            title, value = next(iter(item.items()))
            if isinstance(value, list):
                self.traverse(value, pages)
                continue
            if not isinstance(value, str) or not is_local_reference(value):
                logger.debug('Skipping external nav entry "%s"', title)
                continue
            page = self.page(str(title), f"{DOCS_DIR}/{value}", self.config.title_prefix)
            if page is not None:
                pages.append(page)
        return pages


def build_context(config: Config) -> SyncContext:
    """
    Collect the pages of the MkDocs project at ``config.content_root``.

    Raises:
        ValidationError: If ``mkdocs.yml`` lacks a required setting or a nav
            entry has no title.
    """
    settings = load_mkdocs(config.content_root)
    factory = _PageFactory(config, settings["repo_url"])
    site_name = settings["site_name"]

    pages = factory.traverse(settings["nav"], [])
    home = factory.page(site_name, README_MD, "", required=False)
    if home is None:
        home = LocalPage(site_name, factory.meta())
        home.html = f"<h1>{escape(site_name)}</h1>"

    page_refs = {page.path: page.title for page in [home, *pages] if page.path}
    logger.debug(
        "Context: site %r, %d page(s), home from %s",
        site_name,
        len(pages),
        home.path or "site name",
    )
    return SyncContext(
        site_name=site_name,
        repo=settings["repo_url"],
        pages=pages,
        home=home,
        page_refs=page_refs,
    )
