"""Sync report formatting functions.

Provides human-readable and machine-readable output for a run:

- ``format_sync_report`` -- full post-run summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for ``--json`` output.
- ``write_step_summary`` -- markdown summary for GitHub Actions.
"""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport

from .models import SyncAction

logger = logging.getLogger(__name__)

STEP_SUMMARY_ENV = "GITHUB_STEP_SUMMARY"

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _describe(title: str, path: str | None, page_id: int | None) -> str:
    text = f'"{title}"'
    if page_id is not None:
        text += f" #{page_id}"
    if path:
        text += f" ({path})"
    return text


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.
    Skipped pages are summarised by count only.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Sync report for '{report.site_name}'"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {len(report.results)} pages: "
        f"{len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.deleted)} deleted, {len(report.skipped)} unchanged"
    )
    lines.append("")

    for label, results in (
        ("Deleted:", report.deleted),
        ("Updated:", report.updated),
        ("Created:", report.created),
    ):
        if not results:
            continue
        lines.append(label)
        for r in results:
            lines.append(f"  {_describe(r.title, r.path, r.page_id)}")
        lines.append("")

    if report.skipped_attachments:
        lines.append("Graphs not rendered:")
        for path in report.skipped_attachments:
            lines.append(f"  {path}")
        lines.append("")

    if report.root_url:
        lines.append(f"Published at: {report.root_url}")
        lines.append("")

    if not report.success:
        lines.append(f"FAILED: {report.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each planned action is shown as ``[ACTION] "title" (path)``.

    Args:
        report: A dry-run sync report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"Site: {report.site_name}")
    lines.append("")

    groups: dict[SyncAction, list[str]] = defaultdict(list)
    for r in report.results:
        groups[r.action].append(_describe(r.title, r.path, r.page_id))

    for action in (SyncAction.DELETE, SyncAction.UPDATE, SyncAction.CREATE):
        if action not in groups:
            continue
        lines.append(f"[{action.value.upper()}]")
        for description in groups[action]:
            lines.append(f"  {description}")
        lines.append("")

    skip_count = len(groups.get(SyncAction.SKIP, []))
    if skip_count > 0:
        lines.append(f"Skipped: {skip_count} pages (unchanged)")
        lines.append("")

    if not any(a != SyncAction.SKIP for a in groups):
        lines.append("No changes needed.")
        lines.append("")

    if not report.success:
        lines.append(f"FAILED: {report.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with run info, counts, and per-page details.
    """
    return {
        "site_name": report.site_name,
        "dry_run": report.dry_run,
        "success": report.success,
        "error": report.error,
        "root_url": report.root_url,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "updated": len(report.updated),
            "deleted": len(report.deleted),
            "skipped": len(report.skipped),
            "graphs_not_rendered": len(report.skipped_attachments),
        },
        "results": [r.model_dump(mode="json") for r in report.results],
    }


# ------------------------------------------------------------------
# GitHub Actions step summary
# ------------------------------------------------------------------


def format_step_summary(report: SyncReport, cleanup: bool = False) -> str:
    """Markdown summary of a run for the GitHub Actions job page."""
    if not report.success:
        return f"# :x: Documentation not published\n\n{report.error}\n"
    if cleanup:
        return (
            "# :broom: Cleanup\n\n"
            f'All confluence pages of "{report.site_name}" have been deleted\n'
        )
    if report.dry_run:
        return (
            "# :mag: Documentation dry run\n\n"
            f"{len(report.created)} to create, {len(report.updated)} to update, "
            f"{len(report.deleted)} to delete\n"
        )
    return (
        "# :books: Documentation published\n\n"
        "View the documentation using the following link<br>\n"
        f":link: [{report.site_name}]({report.root_url})\n"
    )


def write_step_summary(
    report: SyncReport, cleanup: bool = False, path: Path | None = None
) -> Path | None:
    """Append the run summary to ``$GITHUB_STEP_SUMMARY``.

    Args:
        report: The run report.
        cleanup: Whether the report comes from a cleanup run.
        path: Explicit summary file; defaults to the env var.

    Returns:
        The file written, or ``None`` outside GitHub Actions.
    """
    if path is None:
        env_path = os.environ.get(STEP_SUMMARY_ENV)
        if not env_path:
            return None
        path = Path(env_path)
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(format_step_summary(report, cleanup))
    logger.debug("Wrote step summary to %s", path)
    return path
