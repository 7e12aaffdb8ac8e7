"""Dispatch diagram rendering to the configured backend.

The dispatcher owns one client per remote backend. It is built once per run
from the configuration and passed to ``Graph.render``; backends that the
configuration selects but no client serves are rejected at construction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

import requests

from ..config import Config
from ..core.async_utils import run_sync
from ..errors import RenderBackendFailure, ValidationError
from ..models.attachment import Graph, GraphBackend
from .base import BaseDiagramClient
from .kroki import KrokiClient
from .plantuml import PlantUmlClient

logger = logging.getLogger(__name__)


class DiagramRenderDispatcher:
    """Turns ``Graph`` attachments into PNG files next to their source.

    Args:
        clients: Strategy map of remote backend to the client rendering it.
        content_root: Directory graph paths are relative to.
        required: Backends the configuration selects; each remote one must
            have a client.

    Raises:
        ValidationError: If a client is registered for a non-remote backend
            or a required remote backend has no client.
    """

    def __init__(
        self,
        clients: Mapping[GraphBackend, BaseDiagramClient],
        content_root: Path,
        required: Iterable[GraphBackend] = (),
    ):
        for backend in clients:
            if not GraphBackend.parse(backend).is_remote:
                raise ValidationError(
                    f"Backend '{backend.value}' does not render through a service"
                )
        missing = sorted(
            b.value for b in required if b.is_remote and b not in clients
        )
        if missing:
            raise ValidationError(
                f"No renderer configured for backend(s): {', '.join(missing)}"
            )
        self._clients = dict(clients)
        self.content_root = content_root

    @classmethod
    def from_config(cls, config: Config) -> DiagramRenderDispatcher:
        return cls(
            {
                GraphBackend.KROKI: KrokiClient(config.kroki_host),
                GraphBackend.PLANTUML: PlantUmlClient(config.plantuml_base_url),
            },
            config.content_root,
            required=[graph.backend for graph in config.graphs.values()],
        )

    async def render(self, graph: Graph) -> str | None:
        """
        Render ``graph`` with its backend.

        Returns:
            POSIX path of the PNG relative to the content root, or ``None``
            when the service failed or could not be reached.
        """
        client = self._clients.get(graph.backend)
        if client is None:
            raise ValidationError(
                f"No renderer configured for backend '{graph.backend.value}'"
            )
        try:
            image = await run_sync(
                client.to_png, self.content_root / graph.path, graph.diagram_type
            )
        except RenderBackendFailure as e:
            logger.debug("%s", e)
            return None
        except requests.RequestException as e:
            logger.debug("%s unreachable for %s: %s", client.name, graph.path, e)
            return None
        return image.relative_to(self.content_root).as_posix()
