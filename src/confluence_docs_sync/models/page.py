"""Local and remote page models.

``LocalPage`` is built fresh on every run from the markdown tree and carries
the rendered storage-format markup. ``RemotePage`` is a snapshot of a page
that already exists in Confluence; the reconciler links it to its local
counterpart through ``local_page``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..errors import ValidationError
from ..validators import validate_type
from .attachment import Attachment, AttachmentKind, Graph, Image
from .meta import Meta


@dataclass
class LocalPage:
    """A markdown page of the documentation tree.

    Attributes:
        title: Page title (unique within the Confluence space).
        meta: Provenance metadata; ``meta.path`` locates the markdown.
        html: Storage-format markup, populated by the page renderer.
        attachments: Images and graphs found while rendering, in order.
        parent_page_id: Id of the Confluence page to nest this page under.
    """

    title: str
    meta: Meta
    html: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    parent_page_id: int | None = None

    def __post_init__(self) -> None:
        validate_type("title", self.title, str)
        validate_type("meta", self.meta, Meta)
        validate_type("parent_page_id", self.parent_page_id, int, optional=True)

    @property
    def path(self) -> str | None:
        return self.meta.path

    @property
    def images(self) -> list[Image]:
        return [a for a in self.attachments if a.kind is AttachmentKind.IMAGE]  # type: ignore[misc]

    @property
    def graphs(self) -> list[Graph]:
        return [a for a in self.attachments if a.kind is AttachmentKind.GRAPH]  # type: ignore[misc]

    def load_markdown(self, root: Path) -> str | None:
        """Read the markdown source under ``root``.

        Returns:
            The file contents, or ``None`` for pages without a source file.

        Raises:
            ValidationError: If the source is not a ``.md`` file.
        """
        if not self.path:
            return None
        if not self.path.endswith(".md"):
            raise ValidationError(f"{self.path} is not a markdown (.md) file")
        return (root / self.path).read_text(encoding="utf-8")


@dataclass
class RemotePage:
    """A page as it currently exists in Confluence.

    Attributes:
        id: Confluence content id.
        version: Current version number; an update must send ``version + 1``.
        title: Page title.
        meta: Metadata read back from the page properties.
        parent_id: Id of the parent page, when known.
        local_page: Local counterpart, set during reconciliation.
    """

    id: int
    version: int
    title: str
    meta: Meta
    parent_id: int | None = None
    local_page: LocalPage | None = None

    def __post_init__(self) -> None:
        validate_type("id", self.id, int)
        validate_type("version", self.version, int)
        validate_type("title", self.title, str)
        validate_type("meta", self.meta, Meta)
        validate_type("parent_id", self.parent_id, int, optional=True)

    @property
    def path(self) -> str | None:
        return self.meta.path

    def repo_conflict(self) -> bool:
        """True if the linked local page comes from another repository."""
        if self.local_page is None:
            return False
        return self.meta.repo != self.local_page.meta.repo
