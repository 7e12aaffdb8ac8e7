"""Unified configuration schema for confluence_docs_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Confluence connection, diagram rendering, and logging.

Usage:
    from confluence_docs_sync.config_loader import load_hierarchical_config
    from confluence_docs_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, model_validator

from .models.attachment import GraphBackend

logger = logging.getLogger(__name__)

# Backends each diagram language may select
SUPPORTED_BACKENDS: dict[str, frozenset[GraphBackend]] = {
    "mermaid": frozenset(
        {GraphBackend.NONE, GraphBackend.KROKI, GraphBackend.MERMAID_PLUGIN}
    ),
    "plantuml": frozenset(
        {GraphBackend.NONE, GraphBackend.KROKI, GraphBackend.PLANTUML}
    ),
}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ConfluenceConfig(BaseModel):
    """Confluence connection and publishing settings.

    All connection fields are optional so env vars and CLI args can supply
    them at runtime instead.
    """

    tenant: str | None = Field(
        default=None,
        description="Atlassian cloud tenant (https://<tenant>.atlassian.net)",
    )
    host: str | None = Field(
        default=None, description="Full Confluence URL, overrides tenant"
    )
    user: str | None = Field(default=None, description="Account email")
    token: str | None = Field(default=None, description="API token")
    space_key: str | None = Field(default=None, description="Space key")
    parent_page: str | None = Field(
        default=None, description="Title of the page to publish under"
    )
    title_prefix: str = Field(
        default="", description="Prefix prepended to every page title"
    )
    force_update: bool = Field(
        default=False, description="Re-publish pages even when unchanged"
    )
    page_limit: int = Field(
        default=25,
        ge=1,
        le=200,
        description="Child pages fetched per request (1-200)",
    )

    model_config = {"frozen": True}


class GraphConfig(BaseModel):
    """How fenced code blocks of one diagram language are handled."""

    diagram_type: str
    backend: GraphBackend = GraphBackend.NONE
    extension: str

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_backend(self) -> GraphConfig:
        supported = SUPPORTED_BACKENDS.get(self.diagram_type)
        if supported is not None and self.backend not in supported:
            choices = ", ".join(sorted(b.value for b in supported))
            raise ValueError(
                f"Backend '{self.backend.value}' cannot render "
                f"{self.diagram_type} diagrams (choose one of: {choices})"
            )
        return self


class GraphsConfig(BaseModel):
    """Diagram languages recognised in fenced code blocks."""

    mermaid: GraphConfig = Field(
        default_factory=lambda: GraphConfig(
            diagram_type="mermaid", extension=".mmd"
        )
    )
    plantuml: GraphConfig = Field(
        default_factory=lambda: GraphConfig(
            diagram_type="plantuml", extension=".puml"
        )
    )

    model_config = {"frozen": True}

    def by_language(self) -> dict[str, GraphConfig]:
        """Mapping of fenced-code language tag to its graph config."""
        return {
            self.mermaid.diagram_type: self.mermaid,
            self.plantuml.diagram_type: self.plantuml,
        }


class KrokiConfig(BaseModel):
    """Kroki rendering service."""

    host: str = Field(default="https://kroki.io")

    model_config = {"frozen": True}


class PlantUmlConfig(BaseModel):
    """PlantUML rendering service."""

    base_url: str = Field(default="https://www.plantuml.com/plantuml/img")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    confluence: ConfluenceConfig = Field(default_factory=ConfluenceConfig)
    graphs: GraphsConfig = Field(default_factory=GraphsConfig)
    kroki: KrokiConfig = Field(default_factory=KrokiConfig)
    plantuml: PlantUmlConfig = Field(default_factory=PlantUmlConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults. A graph section may be given as a bare
    backend name (``graphs: {mermaid: kroki}``).

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    data = dict(raw_data)
    graphs = data.get("graphs")
    if isinstance(graphs, dict):
        expanded = {}
        defaults = GraphsConfig()
        for language, value in graphs.items():
            default = defaults.by_language().get(language)
            if default is None:
                logger.warning("Ignoring unknown graph language '%s'", language)
                continue
            override = (
                {"backend": value} if isinstance(value, str) else dict(value or {})
            )
            expanded[language] = {**default.model_dump(), **override}
        data["graphs"] = expanded

    return UnifiedConfig(**data)
