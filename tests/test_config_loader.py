"""Tests for confluence_docs_sync.config_loader (hierarchical YAML files)."""

import textwrap

import pytest
import yaml

from confluence_docs_sync.config_loader import (
    CONFIG_ENV_VAR,
    _interpolate_recursive,
    _load_yaml_with_includes,
    discover_config_files,
    interpolate_env_vars,
    load_hierarchical_config,
)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """CWD and HOME pointing at empty directories under ``tmp_path``."""
    project = tmp_path / "project"
    home = tmp_path / "home"
    project.mkdir()
    home.mkdir()
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(project)
    monkeypatch.setenv("HOME", str(home))
    return project, home


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))
    return path


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    def test_set_var(self, monkeypatch):
        monkeypatch.setenv("CONFLUENCE_TOKEN_TEST", "t0k3n")
        assert interpolate_env_vars("${CONFLUENCE_TOKEN_TEST}") == "t0k3n"

    def test_unset_var_is_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_for_unset_or_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-kroki}") == "kroki"
        assert interpolate_env_vars("${EMPTY_VAR:-kroki}") == "kroki"

    def test_several_vars(self, monkeypatch):
        monkeypatch.setenv("TENANT", "acme")
        monkeypatch.setenv("SPACE", "DOCS")
        assert interpolate_env_vars("${TENANT}/${SPACE}") == "acme/DOCS"

    def test_unclosed_reference_is_kept(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("SPACE", "DOCS")
        data = {"confluence": {"space_key": "${SPACE}", "page_limit": 50}, "x": ["${SPACE}", 1]}
        assert _interpolate_recursive(data) == {
            "confluence": {"space_key": "DOCS", "page_limit": 50},
            "x": ["DOCS", 1],
        }


# -------------------------------------------------------------------------
# YAML !include support
# -------------------------------------------------------------------------


class TestIncludeDirective:
    def test_relative_include(self, tmp_path):
        write(tmp_path / "secrets.yml", "token: abc\n")
        main = write(tmp_path / "config.yml", "confluence: !include secrets.yml\n")

        assert _load_yaml_with_includes(main) == {"confluence": {"token": "abc"}}

    def test_nested_include(self, tmp_path):
        write(tmp_path / "c.yml", "level: DEBUG\n")
        write(tmp_path / "sub" / "b.yml", "inner: !include ../c.yml\n")
        main = write(tmp_path / "a.yml", "outer: !include sub/b.yml\n")

        assert _load_yaml_with_includes(main) == {"outer": {"inner": {"level": "DEBUG"}}}

    def test_missing_include(self, tmp_path):
        main = write(tmp_path / "config.yml", "x: !include missing.yml\n")

        with pytest.raises(FileNotFoundError, match="missing.yml"):
            _load_yaml_with_includes(main)

    def test_circular_include(self, tmp_path):
        write(tmp_path / "b.yml", "y: !include a.yml\n")
        a = write(tmp_path / "a.yml", "x: !include b.yml\n")

        with pytest.raises(ValueError, match="Circular include"):
            _load_yaml_with_includes(a)

    def test_safe_loader_is_untouched(self, tmp_path):
        cfg = write(tmp_path / "config.yml", "x: !include other.yml\n")

        with pytest.raises(yaml.constructor.ConstructorError):
            yaml.safe_load(cfg.read_text())


# -------------------------------------------------------------------------
# Discovery and merge
# -------------------------------------------------------------------------


class TestDiscoverConfigFiles:
    def test_nothing_to_discover(self, workspace):
        assert discover_config_files() == []

    def test_precedence(self, workspace, tmp_path, monkeypatch):
        project, home = workspace
        explicit = write(tmp_path / "explicit.yml", "a: 1\n")
        yml = write(project / ".confluence_sync" / "config.yml", "a: 2\n")
        yaml_ext = write(project / ".confluence_sync" / "config.yaml", "a: 3\n")
        global_cfg = write(home / ".config" / "confluence_sync" / "config.yml", "a: 4\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(explicit))

        assert [p.resolve() for p in discover_config_files()] == [
            explicit.resolve(),
            yml.resolve(),
            yaml_ext.resolve(),
            global_cfg.resolve(),
        ]


class TestLoadHierarchicalConfig:
    def test_zero_config(self, workspace):
        assert load_hierarchical_config() == {}

    def test_project_section_replaces_global_section(self, workspace):
        project, home = workspace
        write(
            home / ".config" / "confluence_sync" / "config.yml",
            """\
            confluence:
              tenant: acme
              user: global@acme.io
            kroki:
              host: https://kroki.acme.io
            """,
        )
        write(
            project / ".confluence_sync" / "config.yml",
            """\
            confluence:
              space_key: HANDBOOK
            """,
        )

        result = load_hierarchical_config()

        assert result["confluence"] == {"space_key": "HANDBOOK"}
        assert result["kroki"] == {"host": "https://kroki.acme.io"}

    def test_interpolation_after_merge(self, workspace, monkeypatch):
        project, _ = workspace
        monkeypatch.setenv("DOCS_TOKEN", "s3cret")
        write(
            project / ".confluence_sync" / "config.yml",
            """\
            confluence:
              token: "${DOCS_TOKEN}"
            """,
        )

        assert load_hierarchical_config()["confluence"]["token"] == "s3cret"

    def test_non_dict_root_is_skipped(self, workspace, tmp_path, monkeypatch, caplog):
        bad = write(tmp_path / "bad.yml", "- a\n- b\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(bad))

        assert load_hierarchical_config() == {}
        assert "expected a mapping" in caplog.text

    def test_broken_yaml_propagates(self, workspace, tmp_path, monkeypatch):
        bad = write(tmp_path / "bad.yml", "confluence: [unclosed\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(bad))

        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()
