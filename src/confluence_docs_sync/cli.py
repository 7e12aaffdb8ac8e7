"""Command line entry point.

Loads configuration (CLI > env vars / .env > YAML > defaults), runs a sync or
cleanup and prints the report to stdout. Log records go to stderr.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import get_bool_env, load_config
from .config_loader import load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .core.client import ConfluenceClient
from .logger import setup_logging
from .sync import (
    SyncEngine,
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
    write_step_summary,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confluence-docs-sync",
        description="Publish an MkDocs documentation tree to a Confluence space",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Publish the project in the current directory
  confluence-docs-sync

  # Preview what would change
  confluence-docs-sync --dry-run

  # Re-publish every page
  confluence-docs-sync sync --force-update

  # Remove every published page
  confluence-docs-sync cleanup

Credentials are read from CONFLUENCE_USER / CONFLUENCE_TOKEN (or a .env file).
        """,
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["sync", "cleanup"],
        default="sync",
        help="sync (default) publishes the docs, cleanup deletes them",
    )
    parser.add_argument(
        "--root",
        type=Path,
        help="Directory holding mkdocs.yml (default: current directory)",
    )
    parser.add_argument(
        "--host",
        help="Override Confluence URL (takes precedence over CONFLUENCE_HOST)",
    )
    parser.add_argument(
        "--space",
        help="Override space key (takes precedence over CONFLUENCE_SPACE)",
    )
    parser.add_argument(
        "--parent-page",
        help="Override parent page title (takes precedence over CONFLUENCE_PARENT_PAGE)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan the changes without applying them",
    )
    parser.add_argument(
        "--force-update",
        action="store_true",
        help="Re-publish pages even when unchanged",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (config and stack trace on failure)",
    )
    parser.add_argument(
        "--debug-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument("--log-file", help="Also append log records to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"confluence-docs-sync version {__version__}",
    )
    return parser


def _load_unified() -> UnifiedConfig:
    return build_config(load_hierarchical_config())


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    args = build_parser().parse_args(argv)

    # .env first so ${VAR} interpolation in YAML can use its values
    load_dotenv()

    try:
        unified = _load_unified()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration file: {e}", file=sys.stderr)
        return 1

    debug = args.debug or bool(get_bool_env("CONFLUENCE_SYNC_DEBUG"))
    setup_logging(
        debug=debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.debug_format,
        level=unified.logging.level,
    )

    try:
        config = load_config(
            host=args.host,
            space_key=args.space,
            parent_page=args.parent_page,
            force_update=args.force_update,
            debug=debug,
            content_root=args.root,
            unified=unified,
        )
        engine = SyncEngine(ConfluenceClient(config), config)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1

    cleanup = args.command == "cleanup"
    if cleanup:
        report = asyncio.run(engine.cleanup(dry_run=args.dry_run))
    else:
        report = asyncio.run(engine.run(dry_run=args.dry_run))

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    elif report.dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_sync_report(report))

    try:
        write_step_summary(report, cleanup=cleanup)
    except OSError as e:
        logger.warning("Could not write step summary: %s", e)
    return 0 if report.success else 1


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
