"""CLI entry point for the APEC job-posting harvester."""

import argparse
import asyncio
import contextlib
import json
import logging
import sys
from typing import Any

from src.browser.session import BrowserSession
from src.core.config import HarvestConfig, Settings
from src.core.db import SqliteSink, count_records, export_records_json, init_db, insert_harvest_run
from src.core.errors import NoRecordsError
from src.core.schemas import HarvestSummary, SearchCriteria
from src.net.http import HttpClient
from src.net.retry import RetryPolicy
from src.pipeline.criteria import build_criteria
from src.pipeline.orchestrator import HarvestOrchestrator
from src.platforms.apec.api import ApiChannel
from src.platforms.apec.html import HtmlChannel
from src.platforms.apec.locations import LocationResolver
from src.platforms.apec.searcher import build_api_payload, build_search_url
from src.platforms.apec.selectors import CARD_SELECTORS


def _add_harvest_arguments(parser: argparse.ArgumentParser, *, hidden: bool = False) -> None:
    def help_text(text: str) -> str:
        return argparse.SUPPRESS if hidden else text

    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help=help_text("Path to settings YAML file (default: config/settings.yaml)"),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help=help_text("Print the derived search without any network call"),
    )
    parser.add_argument(
        "--export",
        choices=["json"],
        help=help_text("Export stored records after the run (json)"),
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help=help_text("Enable verbose (DEBUG) logging"),
    )
    parser.add_argument("--keyword", help=help_text("Override harvest.keyword"))
    parser.add_argument("--location", help=help_text("Override harvest.location"))
    parser.add_argument("--results", type=int, help=help_text("Override harvest.results_wanted"))
    parser.add_argument("--max-pages", type=int, help=help_text("Override harvest.max_pages"))
    parser.add_argument(
        "--no-details",
        action="store_true",
        help=help_text("Emit listing data only, skip detail fetches"),
    )
    parser.add_argument(
        "--no-api",
        action="store_true",
        help=help_text("Skip the JSON API and use HTML pages only"),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="APEC harvester - collect job postings into a local SQLite database",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- harvest subcommand (default) ---
    harvest_parser = subparsers.add_parser("harvest", help="Run a harvest")
    _add_harvest_arguments(harvest_parser)

    # --- export subcommand ---
    export_parser = subparsers.add_parser("export", help="Print stored records as JSON")
    export_parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    export_parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose (DEBUG) logging")

    # --- top-level flags: harvest without a subcommand ---
    _add_harvest_arguments(parser, hidden=True)

    args = parser.parse_args(argv)

    if args.command is None:
        args.command = "harvest"

    return args


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # One INFO line per request is noise next to the page progress logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return settings with CLI flags layered over the YAML harvest section."""
    overrides: dict[str, Any] = {}
    if args.keyword is not None:
        overrides["keyword"] = args.keyword
    if args.location is not None:
        overrides["location"] = args.location
    if args.results is not None:
        overrides["results_wanted"] = args.results
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.no_details:
        overrides["collect_details"] = False
    if args.no_api:
        overrides["use_api"] = False
    if not overrides:
        return settings

    harvest = HarvestConfig.model_validate({**settings.harvest.model_dump(), **overrides})
    return settings.model_copy(update={"harvest": harvest})


def dry_run(settings: Settings) -> None:
    """Print what would be requested without touching the network."""
    criteria = asyncio.run(build_criteria(settings.harvest))
    base_url = settings.http.base_url

    print("[DRY RUN] Search criteria:")
    print(criteria.model_dump_json(indent=2))
    if settings.harvest.location and not criteria.place_ids:
        print(f"[DRY RUN] Location '{settings.harvest.location}' would be resolved via autocomplete")
    print(f"[DRY RUN] HTML page 0: {build_search_url(criteria, 0, base_url)}")
    if settings.harvest.use_api:
        print("[DRY RUN] API payload page 0:")
        print(json.dumps(build_api_payload(criteria, 0), indent=2, ensure_ascii=False))
    else:
        print("[DRY RUN] API disabled, HTML channel only")
    print(
        f"[DRY RUN] Up to {criteria.desired_count} records over {criteria.max_pages} pages, "
        f"details {'on' if criteria.collect_details else 'off'}",
    )


async def harvest(settings: Settings) -> tuple[SearchCriteria, HarvestSummary]:
    """Build the channels and run one orchestrated harvest."""
    conn = init_db(settings.database.path)
    search_policy = RetryPolicy.from_config(settings.retry.search)
    detail_policy = RetryPolicy.from_config(settings.retry.detail)

    try:
        async with contextlib.AsyncExitStack() as stack:
            http = await stack.enter_async_context(
                HttpClient(settings.http, request_delay_ms=settings.harvest.request_delay_ms),
            )
            renderer = None
            if settings.browser.render_fallback:
                renderer = await stack.enter_async_context(
                    BrowserSession(settings.browser, item_selectors=CARD_SELECTORS),
                )

            criteria = await build_criteria(settings.harvest, LocationResolver(http, search_policy))
            api = None
            if settings.harvest.use_api:
                api = ApiChannel(http, search_policy=search_policy, detail_policy=detail_policy)
            html = HtmlChannel(
                http, page_policy=search_policy, detail_policy=detail_policy, renderer=renderer,
            )
            orchestrator = HarvestOrchestrator(
                html,
                SqliteSink(conn),
                api=api,
                max_concurrency=settings.harvest.max_concurrency,
                call_counter=lambda: http.request_count,
            )
            summary = await orchestrator.run(criteria)

        insert_harvest_run(conn, criteria.model_dump_json(), summary)
    finally:
        conn.close()
    return criteria, summary


def print_summary(summary: HarvestSummary) -> None:
    print(
        f"\nHarvest complete: {summary.records_saved} records saved from "
        f"{summary.pages_processed} pages ({', '.join(summary.channels) or 'no channel'}).",
    )
    print(f"  Remote calls: {summary.remote_calls}")
    print(f"  Errors: {summary.errors}")
    print(f"  Elapsed: {summary.elapsed_s:.1f}s")
    if summary.fallback_used:
        kind = "residual HTML pass" if summary.residual_pass else "HTML fallback"
        print(f"  Fallback: {kind}")


def cmd_export(settings: Settings) -> None:
    conn = init_db(settings.database.path)
    try:
        print(export_records_json(conn))
        print(f"Exported {count_records(conn)} records from {settings.database.path}", file=sys.stderr)
    finally:
        conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    try:
        settings = Settings.from_yaml(args.config)
        if args.command == "harvest":
            settings = apply_overrides(settings, args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging("DEBUG" if args.verbose else settings.log_level)

    if args.command == "export":
        cmd_export(settings)
        return

    if args.dry_run:
        dry_run(settings)
        return

    _, summary = asyncio.run(harvest(settings))
    print_summary(summary)

    if summary.records_saved == 0:
        print(f"Error: {NoRecordsError(summary.upstream_failed)}", file=sys.stderr)
        sys.exit(1)

    if args.export == "json":
        cmd_export(settings)


if __name__ == "__main__":
    main()
