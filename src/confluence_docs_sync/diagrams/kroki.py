import requests

from ..core.client import TIMEOUT
from .base import BaseDiagramClient


class KrokiClient(BaseDiagramClient):
    """Client for a Kroki server (https://kroki.io)."""

    name = "kroki"
    supported_types = ("mermaid", "plantuml")

    def request(self, source: str, diagram_type: str) -> requests.Response:
        return self.session.post(
            f"{self.base_url}/{diagram_type}/png",
            data=source.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
            stream=True,
            timeout=TIMEOUT,
        )
