"""CLI for scraping HU5 venue listings into one JSON event feed.

Usage::

    # Scrape every enabled source and print the JSON array to stdout
    python -m hu5events.cli.scrape run

    # Same, and rewrite the cache file with the result
    python -m hu5events.cli.scrape run --update-cache

    # Use an alternative sources table and JSON log lines on stderr
    python -m hu5events.cli.scrape run --config my_sources.yaml --json-logs

Individual sources are switched off with ``SKIP_<TOGGLE>=1`` environment
variables (e.g. ``SKIP_DIVE=1``).  stdout carries only the JSON array;
every log line goes to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx

from hu5events.config.loader import load_config
from hu5events.config.settings import Settings
from hu5events.models.event import CanonicalEvent
from hu5events.pipeline.event_pipeline import EventPipeline
from hu5events.providers.extractors.registry import build_extractors
from hu5events.providers.http.fetcher import HttpFetcher
from hu5events.services.cutoff import compute_cutoff
from hu5events.services.reconciler import SnapshotStore
from hu5events.utils.errors import ConfigurationError, OutputError
from hu5events.utils.logging import configure_logging, get_logger


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def render_output(events: Sequence[CanonicalEvent]) -> str:
    """Serialise *events* as the published JSON array.

    Raises
    ------
    OutputError
        If any record cannot be serialised.
    """
    try:
        return json.dumps(
            [event.to_json_dict() for event in events],
            ensure_ascii=False,
            indent=2,
        )
    except (TypeError, ValueError) as exc:
        raise OutputError(message=f"Could not serialise output: {exc}") from exc


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_run(args: argparse.Namespace) -> int:
    """Run the full scrape and print the resulting feed."""
    settings = Settings()
    configure_logging(
        settings.log_level,
        json_output=args.json_logs or settings.app_env == "production",
    )
    logger = get_logger(__name__)

    try:
        table = load_config(args.config or settings.sources_path or None)
        now = datetime.now(timezone.utc)
        cutoff = compute_cutoff(now, ZoneInfo(settings.timezone))
        extractors = build_extractors(table.sources, settings, cutoff=cutoff)
    except ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        return 1

    cache_path = args.cache or settings.cache_path

    async with httpx.AsyncClient(follow_redirects=True) as client:
        fetcher = HttpFetcher(
            http_client=client,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            backoff=settings.retry_backoff,
            headers={
                "User-Agent": settings.user_agent,
                "Accept-Language": settings.accept_language,
            },
        )
        pipeline = EventPipeline(
            extractors=extractors,
            fetcher=fetcher,
            table=table,
            settings=settings,
            snapshot_store=SnapshotStore(cache_path),
            clock=lambda: now,
            cutoff=cutoff,
        )
        result = await pipeline.run(update_snapshot=args.update_cache)

    try:
        payload = render_output(result.events)
    except OutputError as exc:
        logger.error("output_failed", error=str(exc))
        return 1

    sys.stdout.write(payload + "\n")
    sys.stdout.flush()

    report = result.report
    logger.info(
        "run_complete",
        events=report.output,
        sources_ok=len(report.sources_ok),
        sources_failed=sorted(report.sources_failed),
        retained_from_snapshot=report.retained_from_snapshot,
    )
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m hu5events.cli.scrape",
        description="Scrape HU5 venue listings into a single JSON event feed.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Scrape all enabled sources")
    run_parser.add_argument(
        "--config",
        default=None,
        help="Path to a sources table YAML (default: bundled sources.yaml)",
    )
    run_parser.add_argument(
        "--cache",
        default=None,
        help="Snapshot file to reconcile against (default: CACHE_PATH)",
    )
    run_parser.add_argument(
        "--update-cache",
        action="store_true",
        help="Rewrite the snapshot file with this run's output",
    )
    run_parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines on stderr",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for the scrape tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        exit_code = asyncio.run(_handle_run(args))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
