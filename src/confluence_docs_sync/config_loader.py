"""
YAML settings files for confluence-docs-sync.

A publishing run can be configured without any file at all; when files exist
they are found by convention, may pull fragments in with ``!include`` and may
reference environment variables as ``${VAR}`` or ``${VAR:-default}``.

Usage:
    from confluence_docs_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CONFLUENCE_SYNC_CONFIG"
CONFIG_DIR_NAME = ".confluence_sync"

_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in *value*.

    An unset or empty variable expands to its default, or to ``""`` when the
    reference has none. Unterminated references are left alone.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), value
    )


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(item) for key, item in obj.items()}
    if isinstance(obj, list):
        return list(map(_interpolate_recursive, obj))
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    return obj


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include <file>``.

    Included paths are relative to the including file. ``chain`` holds the
    files currently being loaded, outermost first.
    """

    def __init__(self, stream, chain: list[Path]):
        super().__init__(stream)
        self.chain = chain

    def include(self, node: yaml.ScalarNode) -> Any:
        source = self.chain[-1]
        target = (source.parent / self.construct_scalar(node)).resolve()
        if target in self.chain:
            cycle = " -> ".join(map(str, [*self.chain, target]))
            raise ValueError(f"Circular include detected: {cycle}")
        if not target.is_file():
            raise FileNotFoundError(
                f"Include file not found: {target} (referenced from {source})"
            )
        return _load_yaml_with_includes(target, _chain=[*self.chain, target])


ConfigLoader.add_constructor("!include", ConfigLoader.include)


def _load_yaml_with_includes(path: Path, *, _chain: list[Path] | None = None) -> Any:
    path = Path(path).resolve()
    with path.open(encoding="utf-8") as fh:
        loader = ConfigLoader(fh, _chain or [path])
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery and merge
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Existing settings files, highest precedence first.

    1. the file named by ``CONFLUENCE_SYNC_CONFIG``
    2. ``./.confluence_sync/config.yml``
    3. ``./.confluence_sync/config.yaml``
    4. ``~/.config/confluence_sync/config.yml``
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    project = Path.cwd() / CONFIG_DIR_NAME
    candidates = [
        Path(explicit).expanduser().resolve() if explicit else None,
        project / "config.yml",
        project / "config.yaml",
        Path.home() / ".config" / "confluence_sync" / "config.yml",
    ]
    return [path for path in candidates if path is not None and path.exists()]


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered settings file into one dict.

    Top-level sections of a higher-precedence file replace the same sections
    of lower ones wholesale. References to environment variables are expanded
    after merging. No files means ``{}``.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Reading settings from %s", path)
        try:
            data = _load_yaml_with_includes(path)
        except (OSError, ValueError, yaml.YAMLError):
            logger.error("Cannot read settings file %s", path)
            raise
        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring %s: expected a mapping, got %s", path, type(data).__name__
            )
            continue
        merged.update(data)
    return _interpolate_recursive(merged)
