"""Provenance metadata stored on every published page."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from ..validators import validate_type
from ..version import is_version_conflict

# Keys as stored in the Confluence content properties
PROPERTY_KEYS: tuple[str, ...] = (
    "repo",
    "path",
    "sha",
    "git_ref",
    "git_sha",
    "publisher_version",
)


@dataclass(frozen=True)
class Meta:
    """Identifies where a page comes from.

    Attributes:
        repo: URL of the repository owning the page.
        path: Source path relative to the content root; the reconciliation
            key. ``None`` for a synthetic home page.
        sha: SHA-256 of the markdown source.
        git_ref: Branch or tag the page was published from.
        git_sha: Commit the page was published from.
        publisher_version: Version of the tool that published the page.
    """

    repo: str
    path: str | None = None
    sha: str | None = None
    git_ref: str | None = None
    git_sha: str | None = None
    publisher_version: str | None = None

    def __post_init__(self) -> None:
        validate_type("repo", self.repo, str)
        validate_type("path", self.path, str, optional=True)
        validate_type("sha", self.sha, str, optional=True)
        validate_type("git_ref", self.git_ref, str, optional=True)
        validate_type("git_sha", self.git_sha, str, optional=True)
        validate_type(
            "publisher_version", self.publisher_version, str, optional=True
        )

    @property
    def source_url(self) -> str | None:
        """Browsable URL of the markdown source, when it can be derived."""
        if not (self.repo and self.git_ref and self.path):
            return None
        return f"{self.repo.rstrip('/')}/blob/{self.git_ref}/{self.path}"

    def publisher_version_conflict(self, current_version: str) -> bool:
        """True if the major/minor publisher version differs from ``current_version``."""
        return is_version_conflict(self.publisher_version, current_version)

    def to_properties(self) -> dict[str, dict[str, str]]:
        """Metadata as Confluence ``{key, value}`` properties, skipping empty values."""
        return {
            key: {"key": key, "value": value}
            for key, value in asdict(self).items()
            if value
        }

    @classmethod
    def from_properties(cls, properties: dict[str, Any] | None) -> Meta:
        """Build metadata from the ``metadata.properties`` of a REST response.

        Missing properties become ``None``; a page without a ``repo``
        property gets an empty repo so ownership checks still compare.
        """
        properties = properties or {}
        values: dict[str, Any] = {}
        for key in PROPERTY_KEYS:
            prop = properties.get(key)
            value = prop.get("value") if isinstance(prop, dict) else None
            values[key] = value if isinstance(value, str) else None
        values["repo"] = values["repo"] or ""
        return cls(**values)
