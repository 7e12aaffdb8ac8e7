"""Tests for confluence_docs_sync.sync.reconciler."""

import pytest

from confluence_docs_sync.errors import RepoConflictError
from confluence_docs_sync.models import LocalPage, RemotePage
from confluence_docs_sync.sync import Reconciler, SyncAction

from conftest import current_meta

VERSION = "1.4.0"


def local(path, sha="same", title=None):
    return LocalPage(title or path, current_meta(path, sha))


def remote(page_id, path, sha="same", version=3, **meta):
    return RemotePage(page_id, version, path or "Home", current_meta(path, sha, **meta))


@pytest.fixture
def reconciler():
    return Reconciler(force_update=False, publisher_version=VERSION)


class TestPlan:
    def test_orders_deletes_updates_creates_skips(self, reconciler):
        pages = [local("docs/new.md"), local("docs/same.md"), local("docs/changed.md", "v2")]
        remote_pages = {
            "docs/same.md": remote(1, "docs/same.md"),
            "docs/changed.md": remote(2, "docs/changed.md", "v1"),
            "docs/gone.md": remote(3, "docs/gone.md"),
        }

        operations = reconciler.plan(pages, remote_pages, parent_id=10)

        assert [(op.action, op.path) for op in operations] == [
            (SyncAction.DELETE, "docs/gone.md"),
            (SyncAction.UPDATE, "docs/changed.md"),
            (SyncAction.CREATE, "docs/new.md"),
            (SyncAction.SKIP, "docs/same.md"),
        ]

    def test_update_targets_next_version(self, reconciler):
        operations = reconciler.plan(
            [local("docs/a.md", "v2")], {"docs/a.md": remote(7, "docs/a.md", "v1", 5)}, 10
        )
        (update,) = operations
        assert update.target_version == 6
        assert update.page_id == 7
        assert update.remote.local_page is update.local

    def test_assigns_parent(self, reconciler):
        pages = [local("docs/a.md"), local("docs/b.md")]
        reconciler.plan(pages, {}, parent_id=10)
        assert [p.parent_page_id for p in pages] == [10, 10]

    def test_empty_remote_creates_everything(self, reconciler):
        operations = reconciler.plan([local("docs/a.md"), local("docs/b.md")], {}, 10)
        assert [op.action for op in operations] == [SyncAction.CREATE] * 2

    def test_nothing_local_deletes_everything(self, reconciler):
        operations = reconciler.plan([], {"docs/a.md": remote(1, "docs/a.md")}, 10)
        assert [(op.action, op.page_id) for op in operations] == [(SyncAction.DELETE, 1)]


class TestShouldUpdate:
    def test_unlinked_remote_is_never_updated(self, reconciler):
        assert not reconciler.should_update(remote(1, "docs/a.md", "old"))

    def test_force_update(self):
        reconciler = Reconciler(force_update=True, publisher_version=VERSION)
        (op,) = reconciler.plan([local("docs/a.md")], {"docs/a.md": remote(1, "docs/a.md")}, 10)
        assert op.action is SyncAction.UPDATE

    @pytest.mark.parametrize(
        "published,action",
        [
            ("1.4.0", SyncAction.SKIP),
            ("1.4.12", SyncAction.SKIP),
            ("1.3.0", SyncAction.UPDATE),
            ("2.0.0", SyncAction.UPDATE),
            (None, SyncAction.UPDATE),
        ],
    )
    def test_publisher_version(self, reconciler, published, action):
        remote_page = remote(1, "docs/a.md", publisher_version=published)
        (op,) = reconciler.plan([local("docs/a.md")], {"docs/a.md": remote_page}, 10)
        assert op.action is action


class TestCheckHome:
    def test_missing_home_is_created(self, reconciler):
        home = local("README.md", title="Handbook")
        op = reconciler.check_home(None, home)
        assert op.action is SyncAction.CREATE
        assert op.local is home

    def test_unchanged_home_is_skipped(self, reconciler):
        op = reconciler.check_home(remote(1, "README.md"), local("README.md"))
        assert op.action is SyncAction.SKIP

    def test_changed_home_is_updated(self, reconciler):
        op = reconciler.check_home(remote(1, "README.md", "v1", 4), local("README.md", "v2"))
        assert op.action is SyncAction.UPDATE
        assert op.target_version == 5

    def test_home_from_another_repo(self, reconciler):
        other = "https://github.com/other/repo"
        with pytest.raises(RepoConflictError, match="other/repo") as exc:
            reconciler.check_home(remote(1, "README.md", repo=other), local("README.md"))
        assert exc.value.remote_repo == other

    def test_synthetic_home(self, reconciler):
        op = reconciler.check_home(remote(1, None, None), local(None, None, "Handbook"))
        assert op.action is SyncAction.SKIP
