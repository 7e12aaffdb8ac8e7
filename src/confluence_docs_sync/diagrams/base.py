"""Shared plumbing for the HTTP diagram rendering services."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import requests
from urllib3.util.retry import Retry

from ..core.client import create_session
from ..errors import RenderBackendFailure, ValidationError

logger = logging.getLogger(__name__)

# Rendering is a pure function of the source, so POST may be retried too
RETRY_METHODS = Retry.DEFAULT_ALLOWED_METHODS | frozenset({"POST"})


class BaseDiagramClient(ABC):
    """Renders diagram source files to PNG through an HTTP service.

    Subclasses name the service, list the diagram types it understands and
    build the request in ``request``.
    """

    name: str = "diagram"
    supported_types: tuple[str, ...] = ()

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self._session: requests.Session | None = None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = create_session(RETRY_METHODS)
        return self._session

    @abstractmethod
    def request(self, source: str, diagram_type: str) -> requests.Response:
        """Send ``source`` to the service; the caller checks the status."""

    def to_png(self, source_path: Path, diagram_type: str) -> Path:
        """
        Render ``source_path`` and write the image next to it.

        Returns:
            Path of the written ``.png`` file.

        Raises:
            ValidationError: If the diagram type is unsupported or the
                source file does not exist.
            RenderBackendFailure: If the service answers with a non-200 status.
        """
        if diagram_type not in self.supported_types:
            supported = '", "'.join(self.supported_types)
            raise ValidationError(
                f'Graph type {diagram_type} is not one of supported ["{supported}"]'
            )
        if not source_path.is_file():
            raise ValidationError(f"File {source_path} not found")

        source = source_path.read_text(encoding="utf-8")
        response = self.request(source, diagram_type)
        try:
            if response.status_code != 200:
                raise RenderBackendFailure(
                    self.name, source_path.as_posix(), response.status_code
                )
            dest = source_path.with_suffix(".png")
            with dest.open("wb") as out:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        out.write(chunk)
        finally:
            response.close()

        logger.debug("Rendered %s with %s to %s", source_path, self.name, dest)
        return dest
