"""Publishing engine.

Modules:

- ``engine``     -- ``SyncEngine``: orchestrates a full run.
- ``reconciler`` -- ``Reconciler``: plans create/update/delete operations.
- ``models``     -- ``SyncAction``, ``PageOperation``, ``SyncResult``,
  ``SyncReport``: core data contracts.
- ``reporter``   -- Human-readable, JSON and step summary formatting.

Usage example
-------------
::

    import asyncio
    from confluence_docs_sync.config import load_config
    from confluence_docs_sync.core.client import ConfluenceClient
    from confluence_docs_sync.sync import SyncEngine, format_sync_report

    config = load_config()
    engine = SyncEngine(ConfluenceClient(config), config)

    # Dry-run first to preview changes
    preview = asyncio.run(engine.run(dry_run=True))
    print(format_sync_report(preview))

    report = asyncio.run(engine.run())
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .models import PageOperation, SyncAction, SyncReport, SyncResult
from .reconciler import Reconciler
from .reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
    write_step_summary,
)

__all__ = [
    "PageOperation",
    "Reconciler",
    "SyncAction",
    "SyncEngine",
    "SyncReport",
    "SyncResult",
    "format_dry_run_preview",
    "format_sync_report",
    "report_to_json",
    "write_step_summary",
]
