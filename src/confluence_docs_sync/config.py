"""Runtime configuration for the documentation publisher.

Reads Confluence connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CONFLUENCE_TENANT: Atlassian cloud tenant, expands to https://<tenant>.atlassian.net
    CONFLUENCE_HOST: Full Confluence URL (overrides CONFLUENCE_TENANT)
    CONFLUENCE_USER: Account email (required)
    CONFLUENCE_TOKEN: API token (required)
    CONFLUENCE_SPACE: Space key (required)
    CONFLUENCE_PARENT_PAGE: Title of the page to publish under (optional)
    CONFLUENCE_TITLE_PREFIX: Prefix for every page title (optional)
    CONFLUENCE_FORCE_UPDATE: Re-publish unchanged pages (optional, default: false)
    MERMAID_RENDERER: none | kroki | mermaid-plugin (optional, default: none)
    PLANTUML_RENDERER: none | kroki | plantuml (optional, default: none)
    KROKI_ENABLED: Deprecated, selects kroki when no renderer is given
    KROKI_HOST: Kroki service URL (optional, default: https://kroki.io)
    PLANTUML_BASE_URL: PlantUML server image URL (optional)
    GITHUB_REF_NAME / GITHUB_SHA: Git reference recorded on published pages
    CONFLUENCE_SYNC_DEBUG: Enable debug diagnostics (optional, default: false)
"""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .config_schema import GraphConfig, UnifiedConfig
from .models.attachment import GraphBackend

logger = logging.getLogger(__name__)

REDACTED = "***"


@dataclass
class Config:
    host: str
    user: str
    token: str
    space_key: str
    parent_page: str | None = None
    title_prefix: str = ""
    force_update: bool = False
    page_limit: int = 25
    graphs: dict[str, GraphConfig] = field(default_factory=dict)
    kroki_host: str = "https://kroki.io"
    plantuml_base_url: str = "https://www.plantuml.com/plantuml/img"
    git_ref: str | None = None
    git_sha: str | None = None
    publisher_version: str = __version__
    content_root: Path = field(default_factory=Path.cwd)
    debug: bool = False

    def page_url(self, page_id: int) -> str:
        """Browser URL of a page in the configured space."""
        return f"{self.host}/wiki/spaces/{self.space_key}/pages/{page_id}"


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.strip().lower() in ("true", "1", "yes", "on")


def _validate_url(name: str, url: str) -> str:
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid {name} '{url}': must start with http:// or https://"
        )
    if not urlparse(url).hostname:
        raise ValueError(f"Invalid {name} '{url}': URL must include a hostname")
    return url.removesuffix("/")


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate. URLs are normalised in place.

    Raises:
        ValueError: If a URL is malformed or credentials/space are empty.
    """
    config.host = _validate_url("Confluence host", config.host)
    config.kroki_host = _validate_url("Kroki host", config.kroki_host)
    config.plantuml_base_url = _validate_url(
        "PlantUML base URL", config.plantuml_base_url
    )

    if not config.user.strip():
        raise ValueError(
            "Confluence user cannot be empty. Set CONFLUENCE_USER environment variable."
        )
    if not config.token.strip():
        raise ValueError(
            "Confluence token cannot be empty. Set CONFLUENCE_TOKEN environment variable."
        )
    if not config.space_key.strip():
        raise ValueError(
            "Confluence space cannot be empty. Set CONFLUENCE_SPACE environment variable."
        )
    if not 1 <= config.page_limit <= 200:
        raise ValueError(
            f"Invalid page limit {config.page_limit}: must be between 1 and 200"
        )


def _resolve_graphs(unified: UnifiedConfig) -> dict[str, GraphConfig]:
    """Apply renderer env vars on top of the YAML graph sections."""
    default_backend = (
        GraphBackend.KROKI if get_bool_env("KROKI_ENABLED") else None
    )
    if default_backend is not None:
        logger.warning(
            "KROKI_ENABLED is deprecated; use MERMAID_RENDERER / PLANTUML_RENDERER"
        )

    graphs: dict[str, GraphConfig] = {}
    for language, env_key in (
        ("mermaid", "MERMAID_RENDERER"),
        ("plantuml", "PLANTUML_RENDERER"),
    ):
        graph = unified.graphs.by_language()[language]
        backend = os.getenv(env_key) or default_backend
        if backend:
            try:
                graph = GraphConfig(
                    diagram_type=graph.diagram_type,
                    backend=GraphBackend.parse(backend),
                    extension=graph.extension,
                )
            except PydanticValidationError as e:
                raise ValueError(f"Invalid {env_key} '{backend}': {e}") from None
        graphs[language] = graph
    return graphs


def load_config(
    host: str | None = None,
    space_key: str | None = None,
    parent_page: str | None = None,
    force_update: bool = False,
    debug: bool = False,
    content_root: Path | None = None,
    unified: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > YAML (``unified``) > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        host: Override Confluence URL.
        space_key: Override space key.
        parent_page: Override parent page title.
        force_update: Re-publish unchanged pages (CLI flag).
        debug: Enable debug diagnostics (CLI flag).
        content_root: Directory holding ``mkdocs.yml``; defaults to CWD.
        unified: Parsed YAML configuration.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (host, user, token, space) is missing
            after checking all sources, or a value is invalid.
    """
    unified = unified or UnifiedConfig()
    fb = unified.confluence

    # --- String fields: CLI > env > YAML > error ---

    tenant = os.getenv("CONFLUENCE_TENANT") or fb.tenant
    final_host = host or os.getenv("CONFLUENCE_HOST") or fb.host
    if not final_host and tenant:
        final_host = f"https://{tenant.strip()}.atlassian.net"
    if not final_host:
        raise ValueError(
            "Confluence host not found. Set CONFLUENCE_TENANT or CONFLUENCE_HOST "
            "environment variable, or add 'tenant' to config.yml."
        )

    user = os.getenv("CONFLUENCE_USER") or fb.user
    if not user:
        raise ValueError(
            "Confluence user not found. Set CONFLUENCE_USER environment variable "
            "or add 'user' to config.yml."
        )

    token = os.getenv("CONFLUENCE_TOKEN") or fb.token
    if not token:
        raise ValueError(
            "Confluence token not found. Set CONFLUENCE_TOKEN environment variable "
            "or add 'token' to config.yml."
        )

    final_space = space_key or os.getenv("CONFLUENCE_SPACE") or fb.space_key
    if not final_space:
        raise ValueError(
            "Confluence space not found. Set CONFLUENCE_SPACE environment variable, "
            "pass --space CLI argument, or add 'space_key' to config.yml."
        )

    final_parent = (
        parent_page or os.getenv("CONFLUENCE_PARENT_PAGE") or fb.parent_page
    )
    title_prefix = os.getenv("CONFLUENCE_TITLE_PREFIX") or fb.title_prefix

    # --- Boolean fields: CLI > env > YAML > default ---

    if force_update:
        final_force = True
    else:
        env_force = get_bool_env("CONFLUENCE_FORCE_UPDATE")
        final_force = env_force if env_force is not None else fb.force_update

    if debug:
        final_debug = True
    else:
        env_debug = get_bool_env("CONFLUENCE_SYNC_DEBUG")
        final_debug = (
            env_debug
            if env_debug is not None
            else unified.logging.level.upper() == "DEBUG"
        )

    config = Config(
        host=final_host.strip(),
        user=user.strip(),
        token=token.strip(),
        space_key=final_space.strip(),
        parent_page=final_parent.strip() if final_parent else None,
        title_prefix=title_prefix,
        force_update=final_force,
        page_limit=fb.page_limit,
        graphs=_resolve_graphs(unified),
        kroki_host=os.getenv("KROKI_HOST") or unified.kroki.host,
        plantuml_base_url=(
            os.getenv("PLANTUML_BASE_URL") or unified.plantuml.base_url
        ),
        git_ref=os.getenv("GITHUB_REF_NAME") or None,
        git_sha=os.getenv("GITHUB_SHA") or None,
        content_root=(content_root or Path.cwd()).resolve(),
        debug=final_debug,
    )

    validate_config(config)

    return config


def redact_config(config: Config) -> dict[str, Any]:
    """Plain dict copy of ``config`` with the API token masked."""
    data = asdict(config)
    data["token"] = REDACTED
    data["content_root"] = str(config.content_root)
    data["graphs"] = {
        language: graph.model_dump(mode="json")
        for language, graph in config.graphs.items()
    }
    return data
