"""Tests for the confluence-docs-sync command line."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from confluence_docs_sync import __version__, cli
from confluence_docs_sync.sync import SyncAction, SyncReport, SyncResult


@pytest.fixture
def env(clean_env, tmp_path):
    clean_env.chdir(tmp_path)
    clean_env.setenv("HOME", str(tmp_path))
    clean_env.setenv("CONFLUENCE_TENANT", "acme")
    clean_env.setenv("CONFLUENCE_USER", "bot@acme.io")
    clean_env.setenv("CONFLUENCE_TOKEN", "secret-token")
    clean_env.setenv("CONFLUENCE_SPACE", "DOCS")
    return clean_env


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch.object(cli, "setup_logging") as mock_setup:
        yield mock_setup


def _report(**kwargs):
    values = {
        "site_name": "Acme Handbook",
        "results": [
            SyncResult(title="Guide", path="docs/guide.md", action=SyncAction.CREATE, page_id=101)
        ],
        "root_url": "https://acme.atlassian.net/wiki/spaces/DOCS/pages/100",
        "started_at": "2026-10-18T09:00:00+00:00",
    }
    values.update(kwargs)
    return SyncReport(**values)


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_sync_prints_report(env, capsys):
    with patch.object(cli.SyncEngine, "run", new=AsyncMock(return_value=_report())) as run:
        assert cli.main([]) == 0

    run.assert_awaited_once_with(dry_run=False)
    out = capsys.readouterr().out
    assert "Sync report for 'Acme Handbook'" in out
    assert "Published at:" in out


def test_dry_run_prints_preview(env, capsys):
    report = _report(dry_run=True, root_url=None)
    with patch.object(cli.SyncEngine, "run", new=AsyncMock(return_value=report)) as run:
        assert cli.main(["--dry-run"]) == 0

    run.assert_awaited_once_with(dry_run=True)
    assert "DRY RUN" in capsys.readouterr().out


def test_json_output(env, capsys):
    with patch.object(cli.SyncEngine, "run", new=AsyncMock(return_value=_report())):
        cli.main(["--json"])

    data = json.loads(capsys.readouterr().out)
    assert data["counts"]["created"] == 1


def test_cleanup_command(env):
    with patch.object(cli.SyncEngine, "cleanup", new=AsyncMock(return_value=_report())) as cleanup:
        assert cli.main(["cleanup"]) == 0
    cleanup.assert_awaited_once_with(dry_run=False)


def test_failed_run_exits_non_zero(env):
    report = _report(success=False, error="boom")
    with patch.object(cli.SyncEngine, "run", new=AsyncMock(return_value=report)):
        assert cli.main([]) == 1


def test_missing_credentials(env, capsys):
    env.delenv("CONFLUENCE_TOKEN")
    with patch.object(cli.SyncEngine, "run") as run:
        assert cli.main([]) == 1
    run.assert_not_called()


def test_invalid_config_file(env, tmp_path, capsys):
    bad = tmp_path / "bad.yml"
    bad.write_text("confluence: [unclosed\n")
    env.setenv("CONFLUENCE_SYNC_CONFIG", str(bad))

    assert cli.main([]) == 1
    assert "invalid configuration file" in capsys.readouterr().err


def test_cli_flags_reach_config(env, tmp_path, no_logging_setup):
    with patch.object(cli, "SyncEngine") as engine_cls:
        engine_cls.return_value.run = AsyncMock(return_value=_report())
        cli.main(
            [
                "--root",
                str(tmp_path),
                "--space",
                "CLI",
                "--parent-page",
                "Engineering",
                "--force-update",
                "--debug",
            ]
        )

    config = engine_cls.call_args.args[1]
    assert config.space_key == "CLI"
    assert config.parent_page == "Engineering"
    assert config.force_update is True
    assert config.content_root == tmp_path.resolve()
    assert no_logging_setup.call_args.kwargs["debug"] is True


def test_step_summary_written(env, tmp_path):
    summary = tmp_path / "summary.md"
    env.setenv("GITHUB_STEP_SUMMARY", str(summary))
    with patch.object(cli.SyncEngine, "run", new=AsyncMock(return_value=_report())):
        cli.main([])

    assert "Documentation published" in summary.read_text()
