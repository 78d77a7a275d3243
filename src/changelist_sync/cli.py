"""Command-line entry point for a changelist sync run.

Loads configuration once, builds the delivery and preview clients, runs the
engine and maps the outcome to an exit status:

    0   merged snapshot written
    1   configuration, remote, malformed-entry or persistence failure
    130 interrupted
"""

import argparse
import asyncio
import logging
import sys

import yaml
from dotenv import load_dotenv

from . import __version__
from .actions import annotate_warning, ci_context, set_failed, set_output
from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import LoggingConfig, build_config, to_fallbacks
from .core.client import create_client
from .errors import ChangelistSyncError, ConfigurationError
from .logger import setup_logging
from .sync.engine import ChangelistSyncEngine
from .sync.models import RunReport
from .sync.reporter import format_run_report
from .sync.sources import ContentfulChangelistSource, ContentfulSnapshotSource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="changelist-sync",
        description="Merge a Contentful changelist into a full sync snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Baseline snapshot only (credentials from env / .env)
  changelist-sync

  # Apply a changelist
  changelist-sync --changelist release-42 --output build/content.json

  # Write the context sidecar and log every request
  changelist-sync --changelist release-42 --context-output build/context.json -vvv

Credentials are read from CTF_SPACE_ID, CTF_CDA_ACCESS_TOKEN and
CTF_CPA_ACCESS_TOKEN.
        """,
    )
    parser.add_argument(
        "--changelist",
        help="Changelist identifier (overrides CTF_CHANGELIST_ID)",
    )
    parser.add_argument(
        "--preview-only",
        action="store_true",
        help="Skip the changelist lookup and write the baseline snapshot",
    )
    parser.add_argument(
        "--space-id",
        help="Contentful space id (overrides CTF_SPACE_ID)",
    )
    parser.add_argument(
        "--environment",
        help="Contentful environment id (overrides CTF_ENVIRONMENT_ID, default: master)",
    )
    parser.add_argument(
        "--output",
        help="Merged snapshot path (overrides CTF_OUTPUT_PATH, default: ctf-sync.json)",
    )
    parser.add_argument(
        "--context-output",
        help="Context sidecar path (overrides CTF_CONTEXT_PATH)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase diagnostic output (repeat up to 3 times)",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--debug-format",
        choices=["text", "json"],
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"changelist-sync version {__version__}",
    )
    return parser


def _load(args: argparse.Namespace) -> tuple[Config, LoggingConfig]:
    """Resolve configuration: CLI > env (.env loaded first) > YAML > defaults."""
    load_dotenv()

    yaml_fallbacks = None
    logging_config = LoggingConfig()
    if discover_config_files():
        try:
            raw = load_hierarchical_config()
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot load config file: {e}") from e
        unified = build_config(raw)
        yaml_fallbacks = to_fallbacks(unified)
        logging_config = unified.logging

    config = load_config(
        space_id=args.space_id,
        environment_id=args.environment,
        changelist_id=args.changelist,
        preview_only=args.preview_only,
        verbosity=min(args.verbose, 3) or None,
        output_path=args.output,
        context_path=args.context_output,
        yaml_fallbacks=yaml_fallbacks,
    )
    return config, logging_config


def build_engine(config: Config) -> ChangelistSyncEngine:
    snapshot_source = ContentfulSnapshotSource(create_client(config))
    changelist_source = None
    if config.needs_changelist_lookup:
        changelist_source = ContentfulChangelistSource(
            create_client(config, preview=True),
            content_type=config.changelist_content_type,
            id_field=config.changelist_id_field,
            locale=config.locale,
        )
    return ChangelistSyncEngine(snapshot_source, changelist_source, config)


def publish_outputs(report: RunReport) -> None:
    set_output("snapshot-path", report.snapshot_path)
    set_output("entries-count", report.total_entries)
    set_output("updated-count", len(report.updated_ids))
    set_output("appended-count", len(report.appended_ids))
    set_output("next-sync-token", report.next_sync_token)


def main(argv: list[str] | None = None) -> int:
    """Run one sync and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config, logging_config = _load(args)
    except ChangelistSyncError as e:
        setup_logging(verbosity=min(args.verbose, 3), log_file=args.log_file)
        logger.error("Configuration error: %s", e)
        set_failed(str(e))
        return 1

    setup_logging(
        verbosity=config.verbosity,
        log_file=args.log_file or logging_config.file,
        debug_format=args.debug_format or logging_config.format,
    )
    logger.info(
        "Changelist sync %s | environment: %s | changelist: [%s]",
        __version__,
        config.environment_id,
        config.changelist_id,
    )

    try:
        engine = build_engine(config)
        report = asyncio.run(engine.run(extra_context=ci_context()))
    except ChangelistSyncError as e:
        logger.error("Sync failed: %s", e, exc_info=config.verbosity >= 2)
        set_failed(str(e))
        return 1

    publish_outputs(report)
    for warning in report.warnings:
        annotate_warning(warning)
    sys.stderr.write(format_run_report(report))
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
