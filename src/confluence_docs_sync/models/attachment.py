"""Files attached to a published page.

Two variants share the ``Attachment`` protocol:

- ``Image``: a local image referenced by the markdown, uploaded as is.
- ``Graph``: a diagram extracted from a fenced code block. Depending on its
  backend it is uploaded as a rendered PNG (``kroki``, ``plantuml``) or as
  its raw source for client-side rendering (``mermaid-plugin``).

Callers branch on ``kind`` (and on ``Graph.backend``) rather than on class
hierarchies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, ClassVar, Protocol

from mistune.util import escape

from ..errors import ValidationError
from ..validators import validate_type

if TYPE_CHECKING:
    from ..diagrams.dispatcher import DiagramRenderDispatcher


class AttachmentKind(str, Enum):
    """Discriminator for attachment variants."""

    IMAGE = "image"
    GRAPH = "graph"


class GraphBackend(str, Enum):
    """How a diagram reaches the page."""

    KROKI = "kroki"
    PLANTUML = "plantuml"
    MERMAID_PLUGIN = "mermaid-plugin"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | GraphBackend) -> GraphBackend:
        """Convert a configuration string, failing on unknown names."""
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(b.value for b in cls)
            raise ValidationError(
                f"Unknown graph backend '{value}': expected one of {choices}"
            ) from None

    @property
    def is_remote(self) -> bool:
        """True for backends that render through an HTTP service."""
        return self in (GraphBackend.KROKI, GraphBackend.PLANTUML)


class Attachment(Protocol):
    """Capability shared by every attachment variant."""

    kind: ClassVar[AttachmentKind]
    path: str

    @property
    def filename(self) -> str: ...  # pragma: no cover

    @property
    def markup(self) -> str: ...  # pragma: no cover

    async def render(
        self, dispatcher: DiagramRenderDispatcher
    ) -> str | None: ...  # pragma: no cover


def image_markup(alt: str, filename: str) -> str:
    """Storage-format reference to an image attached to the same page."""
    return (
        f'<ac:image ac:alt="{escape(alt)}">'
        f'<ri:attachment ri:filename="{escape(filename)}" /></ac:image>'
    )


@dataclass(frozen=True)
class Image:
    """A local image file referenced from markdown.

    Attributes:
        path: POSIX path relative to the content root.
        alt: Alternative text.
    """

    kind: ClassVar[AttachmentKind] = AttachmentKind.IMAGE

    path: str
    alt: str = ""

    def __post_init__(self) -> None:
        validate_type("path", self.path, str)
        validate_type("alt", self.alt, str)

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def markup(self) -> str:
        return image_markup(self.alt, self.filename)

    async def render(self, dispatcher: DiagramRenderDispatcher) -> str | None:
        """Images need no rendering; the source file is the upload."""
        return self.path


@dataclass(frozen=True)
class Graph:
    """A diagram extracted from a fenced code block.

    Attributes:
        path: POSIX path (relative to the content root) of the file holding
            the raw diagram source.
        diagram_type: Diagram language, e.g. ``mermaid`` or ``plantuml``.
        backend: Backend that turns the source into something visible.
        alt: Alternative text, defaults to ``"<type> graph"``.
    """

    kind: ClassVar[AttachmentKind] = AttachmentKind.GRAPH

    path: str
    diagram_type: str
    backend: GraphBackend
    alt: str = field(default="")

    def __post_init__(self) -> None:
        validate_type("path", self.path, str)
        validate_type("diagram_type", self.diagram_type, str)
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "backend", GraphBackend.parse(self.backend))
        if not self.alt:
            object.__setattr__(self, "alt", f"{self.diagram_type} graph")

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def image_filename(self) -> str:
        """Name of the rendered PNG: the source name with a ``.png`` extension."""
        return PurePosixPath(self.path).with_suffix(".png").name

    @property
    def markup(self) -> str:
        match self.backend:
            case GraphBackend.KROKI | GraphBackend.PLANTUML:
                return image_markup(self.alt, self.image_filename)
            case GraphBackend.MERMAID_PLUGIN:
                return (
                    '<ac:structured-macro ac:name="mermaid-cloud" data-layout="default" >'
                    f'<ac:parameter ac:name="filename">{escape(self.filename)}</ac:parameter>'
                    "</ac:structured-macro>"
                )
            case _:
                return ""

    async def render(self, dispatcher: DiagramRenderDispatcher) -> str | None:
        """Path of the file to upload for this diagram, or ``None`` on failure."""
        match self.backend:
            case GraphBackend.MERMAID_PLUGIN:
                return self.path
            case GraphBackend.NONE:
                return None
            case _:
                return await dispatcher.render(self)
