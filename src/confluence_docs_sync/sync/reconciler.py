"""Plan page operations by comparing local pages with the remote snapshot.

Pages are matched by their markdown source path (``meta.path``), except the
home page which is matched by title since it may have no source file.

Planned child operations are ordered **delete, update, create** (Confluence
titles are unique per space). Skips come last and only feed the report.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from ..config import Config
from ..errors import RepoConflictError
from ..models import LocalPage, RemotePage
from .models import PageOperation, SyncAction

logger = logging.getLogger(__name__)


class Reconciler:
    """Decides what to do with every page of a run.

    Args:
        force_update: Update every existing page regardless of changes.
        publisher_version: Version of this tool; pages published by another
            major/minor version are updated.
    """

    def __init__(self, force_update: bool, publisher_version: str):
        self.force_update = force_update
        self.publisher_version = publisher_version

    @classmethod
    def from_config(cls, config: Config) -> Reconciler:
        return cls(config.force_update, config.publisher_version)

    def should_update(self, remote: RemotePage) -> bool:
        """True when ``remote`` must be overwritten by its local page."""
        if remote.local_page is None:
            return False
        if self.force_update:
            return True
        if remote.meta.publisher_version_conflict(self.publisher_version):
            return True
        return remote.local_page.meta.sha != remote.meta.sha

    def _pair(self, remote: RemotePage, local: LocalPage) -> PageOperation:
        remote.local_page = local
        if self.should_update(remote):
            return PageOperation(
                SyncAction.UPDATE,
                local=local,
                remote=remote,
                target_version=remote.version + 1,
            )
        return PageOperation(SyncAction.SKIP, local=local, remote=remote)

    def check_home(
        self, remote: RemotePage | None, local: LocalPage
    ) -> PageOperation:
        """
        Plan the home page operation.

        Raises:
            RepoConflictError: If a page with the home title belongs to
                another repository.
        """
        if remote is None:
            return PageOperation(SyncAction.CREATE, local=local)
        remote.local_page = local
        if remote.repo_conflict():
            raise RepoConflictError(remote.title, remote.meta.repo, local.meta.repo)
        return self._pair(remote, local)

    def plan(
        self,
        local_pages: Iterable[LocalPage],
        remote_pages: Mapping[str | None, RemotePage],
        parent_id: int | None,
    ) -> list[PageOperation]:
        """
        Plan the operations for the children of ``parent_id``.

        Args:
            local_pages: Pages of the documentation tree, in nav order.
            remote_pages: Current children of the home page by source path.
            parent_id: Home page id, assigned as parent of every local page.

        Returns:
            Deletes, then updates, then creates, then skips.
        """
        remaining = dict(remote_pages)
        updates: list[PageOperation] = []
        creates: list[PageOperation] = []
        skips: list[PageOperation] = []

        for local in local_pages:
            local.parent_page_id = parent_id
            remote = remaining.pop(local.path, None)
            if remote is None:
                creates.append(PageOperation(SyncAction.CREATE, local=local))
                continue
            operation = self._pair(remote, local)
            if operation.action is SyncAction.UPDATE:
                updates.append(operation)
            else:
                skips.append(operation)

        # remote pages left without a local source are orphans
        deletes = [
            PageOperation(SyncAction.DELETE, remote=remote)
            for remote in remaining.values()
        ]

        logger.debug(
            "Planned %d delete(s), %d update(s), %d create(s), %d skip(s)",
            len(deletes),
            len(updates),
            len(creates),
            len(skips),
        )
        return deletes + updates + creates + skips
