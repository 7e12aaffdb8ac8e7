"""Diagram rendering backends."""

from .base import BaseDiagramClient
from .dispatcher import DiagramRenderDispatcher
from .kroki import KrokiClient
from .plantuml import PlantUmlClient, encode_plantuml

__all__ = [
    "BaseDiagramClient",
    "DiagramRenderDispatcher",
    "KrokiClient",
    "PlantUmlClient",
    "encode_plantuml",
]
