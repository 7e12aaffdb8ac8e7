"""Sync engine that publishes a documentation tree to Confluence.

The ``SyncEngine`` ties together the context builder, reconciler, page
renderer and diagram dispatcher into a complete run. It:

1. Builds the local page list from ``mkdocs.yml``.
2. Resolves the configured parent page.
3. Creates or updates the home page (aborting on a repo conflict).
4. Fetches the home page's children and reconciles them with the local
   pages.
5. Executes deletes, then updates, then creates. Each published page is
   rendered, its graphs are dispatched, the page body is sent and its
   attachments are uploaded, images first.
6. Builds and returns a ``SyncReport``.

Every network call is awaited before the next one starts. A graph that
fails to render is skipped with a warning; any other error aborts the run
and is turned into a failed report, so nothing escapes ``run``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from ..config import Config, redact_config
from ..context import SyncContext, build_context
from ..converters.storage_format import PageRenderer
from ..core.async_utils import run_sync
from ..core.client import ConfluenceClient
from ..diagrams.dispatcher import DiagramRenderDispatcher
from ..errors import ParentPageNotFoundError
from ..models import Graph, RemotePage
from .models import PageOperation, SyncAction, SyncReport, SyncResult
from .reconciler import Reconciler

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncEngine:
    """Publish one MkDocs project to one Confluence space.

    Args:
        client: ConfluenceClient (or any object with the same methods).
        config: Runtime configuration.
        dispatcher: Diagram dispatcher; built from ``config`` when omitted.
        reconciler: Reconciler; built from ``config`` when omitted.
    """

    def __init__(
        self,
        client: ConfluenceClient,
        config: Config,
        dispatcher: DiagramRenderDispatcher | None = None,
        reconciler: Reconciler | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.dispatcher = dispatcher or DiagramRenderDispatcher.from_config(config)
        self.reconciler = reconciler or Reconciler.from_config(config)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self, context: SyncContext | None = None, dry_run: bool = False
    ) -> SyncReport:
        """Publish the documentation.

        Args:
            context: Local pages; built from ``config.content_root`` when
                omitted.
            dry_run: If ``True``, plan the operations but neither render nor
                change anything.

        Returns:
            A ``SyncReport``; ``success`` is ``False`` if the run aborted.
        """
        started_at = _now()
        results: list[SyncResult] = []
        site_name = context.site_name if context else ""
        try:
            context = context or build_context(self.config)
            site_name = context.site_name
            home_id = await self._sync(context, results, dry_run)
        except Exception as exc:
            self._handle_error(exc)
            return SyncReport(
                site_name=site_name,
                dry_run=dry_run,
                results=results,
                success=False,
                error=str(exc),
                started_at=started_at,
                completed_at=_now(),
            )

        root_url = self.config.page_url(home_id) if home_id is not None else None
        if dry_run:
            logger.info('"%s" dry run complete, nothing was changed', site_name)
        else:
            logger.info('"%s" Documentation published at %s', site_name, root_url)
        return SyncReport(
            site_name=site_name,
            dry_run=dry_run,
            results=results,
            root_url=root_url,
            started_at=started_at,
            completed_at=_now(),
        )

    async def cleanup(
        self, context: SyncContext | None = None, dry_run: bool = False
    ) -> SyncReport:
        """Delete every page published for the site, children first.

        A missing home page is only worth a warning.
        """
        started_at = _now()
        results: list[SyncResult] = []
        site_name = context.site_name if context else ""
        try:
            context = context or build_context(self.config)
            site_name = context.site_name
            home = await run_sync(self.client.find_page, context.home.title)
            if home is None:
                logger.warning(
                    'No page with title "%s" found in confluence, nothing to clean here',
                    context.home.title,
                )
            else:
                children = await run_sync(self.client.get_child_pages, home.id)
                for page in [*children.values(), home]:
                    operation = PageOperation(SyncAction.DELETE, remote=page)
                    results.append(await self._execute(operation, None, dry_run))
        except Exception as exc:
            self._handle_error(exc)
            return SyncReport(
                site_name=site_name,
                dry_run=dry_run,
                results=results,
                success=False,
                error=str(exc),
                started_at=started_at,
                completed_at=_now(),
            )

        return SyncReport(
            site_name=site_name,
            dry_run=dry_run,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )

    # ------------------------------------------------------------------
    # Run steps
    # ------------------------------------------------------------------

    async def _sync(
        self, context: SyncContext, results: list[SyncResult], dry_run: bool
    ) -> int | None:
        """Sync home and child pages, appending to ``results``.

        Returns:
            The home page id (``None`` when a dry run would create it).
        """
        renderer = PageRenderer.from_config(self.config, context.page_refs)

        home = context.home
        home.parent_page_id = await self._find_parent_page()
        remote_home = await run_sync(self.client.find_page, home.title)
        home_result = await self._execute(
            self.reconciler.check_home(remote_home, home), renderer, dry_run
        )
        results.append(home_result)
        home_id = home_result.page_id

        remote_pages: dict[str | None, RemotePage] = {}
        if home_id is not None:
            remote_pages = await run_sync(self.client.get_child_pages, home_id)

        for operation in self.reconciler.plan(context.pages, remote_pages, home_id):
            results.append(await self._execute(operation, renderer, dry_run))
        return home_id

    async def _find_parent_page(self) -> int | None:
        """Id of the configured parent page, ``None`` when none is configured.

        Raises:
            ParentPageNotFoundError: If the configured page does not exist.
        """
        title = self.config.parent_page
        if not title:
            return None
        parent = await run_sync(self.client.find_page, title)
        if parent is None:
            raise ParentPageNotFoundError(title)
        return parent.id

    async def _execute(
        self,
        operation: PageOperation,
        renderer: PageRenderer | None,
        dry_run: bool,
    ) -> SyncResult:
        match operation.action:
            case SyncAction.DELETE:
                remote = operation.remote
                assert remote is not None
                if not dry_run:
                    await run_sync(self.client.delete_page, remote.id)
                logger.debug('Deleted page "%s" #%s', remote.title, remote.id)
                return SyncResult(
                    title=remote.title,
                    path=remote.path,
                    action=SyncAction.DELETE,
                    page_id=remote.id,
                )
            case SyncAction.SKIP:
                remote = operation.remote
                assert remote is not None
                logger.debug('Skipping update of page "%s" #%s', remote.title, remote.id)
                return SyncResult(
                    title=remote.title,
                    path=remote.path,
                    action=SyncAction.SKIP,
                    page_id=remote.id,
                    version=remote.version,
                )
            case _:
                if dry_run or renderer is None:
                    logger.debug(
                        'Would %s page "%s"', operation.action.value, operation.title
                    )
                    return SyncResult(
                        title=operation.title,
                        path=operation.path,
                        action=operation.action,
                        page_id=operation.page_id,
                        version=operation.target_version,
                    )
                return await self._publish(operation, renderer)

    async def _publish(
        self, operation: PageOperation, renderer: PageRenderer
    ) -> SyncResult:
        """Render, dispatch graphs, send the page body, upload attachments."""
        page = operation.local
        assert page is not None
        renderer.render(page)

        files: list[str] = []
        failed: list[Graph] = []
        for attachment in [*page.images, *page.graphs]:
            rendered = await attachment.render(self.dispatcher)
            if rendered is None:
                failed.append(attachment)  # type: ignore[arg-type]
            else:
                files.append(rendered)

        if operation.action is SyncAction.CREATE:
            page_id = await run_sync(self.client.create_page, page)
            version = 1
            logger.debug('Created page "%s" #%s', page.title, page_id)
        else:
            remote = operation.remote
            assert remote is not None and operation.target_version is not None
            page_id = remote.id
            version = operation.target_version
            await run_sync(
                self.client.update_page,
                page_id,
                version,
                page.title,
                page.html,
                page.parent_page_id,
                page.meta,
            )
            remote.version = version
            remote.meta = page.meta
            logger.debug('Updated page "%s" #%s to version %s', page.title, page_id, version)

        for graph in failed:
            logger.warning(
                'Graph "%s" for page #%s could not be processed', graph.path, page_id
            )

        for path in files:
            await run_sync(
                self.client.create_attachment, page_id, self.config.content_root / path
            )
            logger.debug('Attached file "%s" to page "%s" #%s', path, page.title, page_id)

        return SyncResult(
            title=page.title,
            path=page.path,
            action=operation.action,
            page_id=page_id,
            version=version,
            attachments=files,
            skipped_attachments=[graph.path for graph in failed],
        )

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _handle_error(self, exc: Exception) -> None:
        """Log a run-aborting error; config and traceback only at DEBUG."""
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Config:\n%s",
                json.dumps(redact_config(self.config), indent=2, default=str),
            )
            logger.debug("Sync aborted", exc_info=exc)
        logger.error("%s", exc)
