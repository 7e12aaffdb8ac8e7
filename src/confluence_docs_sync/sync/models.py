"""Data contracts of the sync engine.

- ``SyncAction``: Enum of possible page operations.
- ``PageOperation``: One planned operation, produced by the reconciler.
- ``SyncResult``: Outcome of one page operation.
- ``SyncReport``: Aggregate results for a full run.

Reports are frozen pydantic models; operations are plain dataclasses since
they point at the (mutable) page objects they act on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from ..models import LocalPage, RemotePage


class SyncAction(str, Enum):
    """Possible operations for a local/remote page pair."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SKIP = "skip"


@dataclass
class PageOperation:
    """A planned page operation.

    Attributes:
        action: What to do.
        local: Local page to publish (create, update, skip).
        remote: Existing remote page (update, delete, skip).
        target_version: Version number to send with an update.
    """

    action: SyncAction
    local: LocalPage | None = None
    remote: RemotePage | None = None
    target_version: int | None = None

    @property
    def title(self) -> str:
        page = self.local or self.remote
        return page.title if page is not None else ""

    @property
    def path(self) -> str | None:
        page = self.local or self.remote
        return page.path if page is not None else None

    @property
    def page_id(self) -> int | None:
        return self.remote.id if self.remote is not None else None


class SyncResult(BaseModel):
    """Result of one page operation.

    Attributes:
        title: Page title.
        path: Markdown source path, ``None`` for a synthetic home page.
        action: Operation performed (or planned, in a dry run).
        page_id: Confluence id of the page, when known.
        version: Page version after the operation.
        attachments: Files uploaded to the page.
        skipped_attachments: Graph sources that could not be rendered.
    """

    title: str
    path: str | None = None
    action: SyncAction
    page_id: int | None = None
    version: int | None = None
    attachments: list[str] = []
    skipped_attachments: list[str] = []

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full run.

    Attributes:
        site_name: Documentation site name (home page title).
        dry_run: Whether this was a dry-run (no changes applied).
        results: Individual page results, in execution order.
        root_url: Browser URL of the home page.
        success: False when the run aborted.
        error: Error message of an aborted run.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run ended.
    """

    site_name: str = ""
    dry_run: bool = False
    results: list[SyncResult] = []
    root_url: str | None = None
    success: bool = True
    error: str | None = None
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def by_action(self, action: SyncAction) -> list[SyncResult]:
        return [r for r in self.results if r.action == action]

    @property
    def created(self) -> list[SyncResult]:
        return self.by_action(SyncAction.CREATE)

    @property
    def updated(self) -> list[SyncResult]:
        return self.by_action(SyncAction.UPDATE)

    @property
    def deleted(self) -> list[SyncResult]:
        return self.by_action(SyncAction.DELETE)

    @property
    def skipped(self) -> list[SyncResult]:
        return self.by_action(SyncAction.SKIP)

    @property
    def skipped_attachments(self) -> list[str]:
        """Graph sources that could not be rendered, across all pages."""
        return [path for r in self.results for path in r.skipped_attachments]

    def summary(self) -> str:
        """Format a human-readable summary of the run.

        Returns:
            Multi-line summary string with counts by action.
        """
        lines = [
            f"Sync report for '{self.site_name}'"
            + (" (dry run)" if self.dry_run else ""),
            f"  Created:  {len(self.created)}",
            f"  Updated:  {len(self.updated)}",
            f"  Deleted:  {len(self.deleted)}",
            f"  Skipped:  {len(self.skipped)}",
            f"  Graphs not rendered: {len(self.skipped_attachments)}",
            f"  Total:    {len(self.results)}",
        ]
        if not self.success:
            lines.append(f"  Failed:   {self.error}")
        return "\n".join(lines)
