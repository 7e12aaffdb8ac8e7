"""Page and attachment data model."""

from .attachment import (
    Attachment,
    AttachmentKind,
    Graph,
    GraphBackend,
    Image,
    image_markup,
)
from .meta import PROPERTY_KEYS, Meta
from .page import LocalPage, RemotePage

__all__ = [
    "PROPERTY_KEYS",
    "Attachment",
    "AttachmentKind",
    "Graph",
    "GraphBackend",
    "Image",
    "LocalPage",
    "Meta",
    "RemotePage",
    "image_markup",
]
