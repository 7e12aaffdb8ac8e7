"""Shared pytest fixtures for confluence-docs-sync tests."""

from __future__ import annotations

import textwrap
from collections import defaultdict
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest
import yaml

from confluence_docs_sync import __version__
from confluence_docs_sync.config import Config
from confluence_docs_sync.config_schema import GraphConfig
from confluence_docs_sync.errors import RequestError
from confluence_docs_sync.models import GraphBackend, LocalPage, Meta, RemotePage

REPO = "https://github.com/acme/handbook"
SITE_NAME = "Acme Handbook"

MUTATING_CALLS = ("create_page", "update_page", "delete_page", "create_attachment")

ENV_VARS = (
    "CONFLUENCE_TENANT",
    "CONFLUENCE_HOST",
    "CONFLUENCE_USER",
    "CONFLUENCE_TOKEN",
    "CONFLUENCE_SPACE",
    "CONFLUENCE_PARENT_PAGE",
    "CONFLUENCE_TITLE_PREFIX",
    "CONFLUENCE_FORCE_UPDATE",
    "CONFLUENCE_SYNC_DEBUG",
    "CONFLUENCE_SYNC_CONFIG",
    "MERMAID_RENDERER",
    "PLANTUML_RENDERER",
    "KROKI_ENABLED",
    "KROKI_HOST",
    "PLANTUML_BASE_URL",
    "GITHUB_REF_NAME",
    "GITHUB_SHA",
    "GITHUB_STEP_SUMMARY",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment variable the tool reads."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def make_graphs(
    mermaid: GraphBackend = GraphBackend.KROKI,
    plantuml: GraphBackend = GraphBackend.PLANTUML,
) -> dict[str, GraphConfig]:
    return {
        "mermaid": GraphConfig(diagram_type="mermaid", backend=mermaid, extension=".mmd"),
        "plantuml": GraphConfig(
            diagram_type="plantuml", backend=plantuml, extension=".puml"
        ),
    }


@pytest.fixture
def config(tmp_path) -> Config:
    """Config rooted at a temporary project directory."""
    return Config(
        host="https://acme.atlassian.net",
        user="bot@acme.io",
        token="secret-token",
        space_key="DOCS",
        graphs=make_graphs(),
        git_ref="main",
        git_sha="0123abcd",
        content_root=tmp_path,
    )


def write_project(
    root: Path,
    pages: list[tuple[str, str, str]],
    readme: str | None = "# Acme Handbook\n",
    site_name: str = SITE_NAME,
    repo_url: str = REPO,
) -> None:
    """Write an MkDocs project.

    Args:
        pages: ``(title, path under docs/, markdown)`` triples, in nav order.
    """
    (root / "docs").mkdir(parents=True, exist_ok=True)
    for _, path, markdown in pages:
        target = root / "docs" / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(markdown), encoding="utf-8")
    if readme is not None:
        (root / "README.md").write_text(readme, encoding="utf-8")
    mkdocs = {
        "site_name": site_name,
        "repo_url": repo_url,
        "nav": [{title: path} for title, path, _ in pages],
    }
    (root / "mkdocs.yml").write_text(yaml.safe_dump(mkdocs), encoding="utf-8")


@pytest.fixture
def project(tmp_path):
    """Factory writing an MkDocs project into ``tmp_path``."""

    def _write(pages, **kwargs):
        write_project(tmp_path, pages, **kwargs)
        return tmp_path

    return _write


def current_meta(path: str | None = None, sha: str | None = None, **kwargs) -> Meta:
    values: dict[str, Any] = {
        "repo": REPO,
        "path": path,
        "sha": sha,
        "git_ref": "main",
        "git_sha": "0123abcd",
        "publisher_version": __version__,
    }
    values.update(kwargs)
    return Meta(**values)


class FakeConfluenceClient:
    """In-memory stand-in for ``ConfluenceClient``.

    Pages live in ``pages`` by id. Every call is recorded in ``calls`` as
    ``(method, args)``.
    """

    def __init__(self) -> None:
        self.pages: dict[int, dict[str, Any]] = {}
        self.attachments: dict[int, list[str]] = defaultdict(list)
        self.calls: list[tuple[str, tuple]] = []
        self.fail_on: dict[str, Exception] = {}
        self._next_id = 100

    # -- seeding helpers ------------------------------------------------

    def add_page(
        self,
        title: str,
        meta: Meta,
        version: int = 1,
        parent_id: int | None = None,
        html: str = "",
    ) -> int:
        page_id = self._next_id
        self._next_id += 1
        self.pages[page_id] = {
            "id": page_id,
            "title": title,
            "meta": meta,
            "version": version,
            "parent_id": parent_id,
            "html": html,
        }
        return page_id

    def _remote(self, data: dict[str, Any], parent_id: int | None = None) -> RemotePage:
        return RemotePage(
            id=data["id"],
            version=data["version"],
            title=data["title"],
            meta=data["meta"],
            parent_id=parent_id,
        )

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise self.fail_on[name]

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    @property
    def mutating_calls(self) -> list[tuple[str, tuple]]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def calls_to(self, name: str) -> list[tuple]:
        return [args for call_name, args in self.calls if call_name == name]

    # -- client API -----------------------------------------------------

    def find_page(self, title: str) -> RemotePage | None:
        self._record("find_page", title)
        for data in self.pages.values():
            if data["title"] == title:
                return self._remote(data)
        return None

    def get_child_pages(self, parent_id: int) -> dict[str | None, RemotePage]:
        self._record("get_child_pages", parent_id)
        return {
            data["meta"].path: self._remote(data, parent_id)
            for data in self.pages.values()
            if data["parent_id"] == parent_id
        }

    def create_page(self, page: LocalPage) -> int:
        self._record("create_page", page)
        return self.add_page(
            page.title, page.meta, 1, page.parent_page_id, page.html
        )

    def update_page(
        self,
        page_id: int,
        version: int,
        title: str,
        html: str,
        parent_id: int | None = None,
        meta: Meta | None = None,
    ) -> None:
        self._record("update_page", page_id, version, title, html, parent_id, meta)
        data = self.pages[page_id]
        if version != data["version"] + 1:
            raise RequestError(409, "Conflict", "Version must be incremented")
        data.update(version=version, title=title, html=html, meta=meta)

    def delete_page(self, page_id: int) -> None:
        self._record("delete_page", page_id)
        self.pages.pop(page_id, None)

    def create_attachment(self, page_id: int, path: Path) -> None:
        self._record("create_attachment", page_id, path)
        if not path.is_file():
            raise FileNotFoundError(path)
        self.attachments[page_id].append(path.name)


@pytest.fixture
def fake_client() -> FakeConfluenceClient:
    return FakeConfluenceClient()


@pytest.fixture
def make_response():
    """Factory fixture for ``requests.Response`` mocks."""

    def _create(
        status: int = 200,
        data: Any = None,
        reason: str = "OK",
        chunks: list[bytes] | None = None,
    ) -> Mock:
        response = Mock()
        response.status_code = status
        response.reason = reason
        response.content = b"{}" if data is not None else b""
        response.json.return_value = data
        response.text = str(data)
        response.iter_content.return_value = chunks or []
        return response

    return _create
