#!/usr/bin/env python3
"""Import movies from the Ophim catalog API into the PhimGG database.

Examples:
  phimgg-import --page 1
  phimgg-import --start 1 --end 5
  phimgg-import --page 1 --no-skip
  phimgg-import --page 1 --validate-only
  phimgg-import --start 1 --end 2252 --resume
"""

import argparse
import asyncio
import logging
import sys

from phimgg.core.container import AppContainer
from phimgg.core.logging import configure_logging
from phimgg.core.settings import Settings, get_settings
from phimgg.models.imports import ImportConfig, ImportStats

logger = logging.getLogger(__name__)

_RULE = "=" * 32


def format_summary(stats: ImportStats) -> str:
    seconds = stats.duration_ms / 1000
    lines = [
        "",
        _RULE,
        "Import Summary",
        _RULE,
        f"Total pages: {stats.total_pages}",
        f"Pages processed: {stats.pages_processed}",
        f"Movies processed: {stats.movies_processed}",
        f"Movies imported: {stats.movies_imported}",
        f"Movies skipped: {stats.movies_skipped}",
        f"Movies failed: {stats.movies_failed}",
        f"Episodes imported: {stats.episodes_imported}",
        f"Episodes skipped: {stats.episodes_skipped}",
        f"Episodes failed: {stats.episodes_failed}",
        f"Duration: {seconds:.2f}s",
        f"Speed: {stats.movies_per_second:.2f} movies/s",
    ]
    if stats.errors:
        lines.append("")
        lines.append("Errors:")
        lines.extend(f"  - {entry.slug}: {entry.error}" for entry in stats.errors)
    lines.append(_RULE)
    return "\n".join(lines)


def resolve_page_range(args: argparse.Namespace) -> tuple[int, int]:
    if args.page is not None:
        if args.start is not None or args.end is not None:
            raise ValueError("--page cannot be combined with --start/--end")
        return args.page, args.page

    page_start = args.start if args.start is not None else 1
    page_end = args.end if args.end is not None else page_start
    if page_start < 1 or page_end < 1:
        raise ValueError("Page numbers must be >= 1")
    if page_start > page_end:
        raise ValueError("Start page must be <= end page")
    return page_start, page_end


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phimgg-import",
        description="Import movies from the Ophim API into the database.",
        epilog=__doc__.split("Examples:", 1)[1] if __doc__ else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-p", "--page", type=int, help="Import a single page.")
    parser.add_argument("-s", "--start", type=int, help="Start page for a range import.")
    parser.add_argument("-e", "--end", type=int, help="End page for a range import (inclusive).")
    parser.add_argument(
        "--no-skip",
        dest="skip_existing",
        action="store_false",
        help="Re-import movies that already exist (default: skip).",
    )
    parser.add_argument("--validate-only", action="store_true", help="Validate data without writing to the database.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show per-movie and per-episode detail.")
    parser.add_argument("--rate-limit", type=int, metavar="MS", help="Minimum delay between API calls in ms.")
    parser.add_argument("--checkpoint", metavar="PATH", help="Checkpoint file for resumable runs.")
    parser.add_argument("--resume", action="store_true", help="Continue after the last completed page.")
    parser.add_argument("--database-url", help="SQLAlchemy database URL (overrides DATABASE_URL).")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    updates = {}
    if args.database_url:
        updates["database_url"] = args.database_url
    if args.checkpoint:
        updates["checkpoint_path"] = args.checkpoint
    return settings.model_copy(update=updates) if updates else settings


async def run_import(container: AppContainer, config: ImportConfig) -> ImportStats:
    importer = container.build_importer(config)
    try:
        return await importer.run()
    finally:
        print(format_summary(importer.stats))
        await container.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        page_start, page_end = resolve_page_range(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if args.rate_limit is not None and args.rate_limit < 0:
        print("Error: --rate-limit must be >= 0", file=sys.stderr)
        return 1

    settings = _apply_overrides(get_settings(), args)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        container = AppContainer(settings)
        config = container.build_import_config(
            page_start=page_start,
            page_end=page_end,
            skip_existing=args.skip_existing,
            validate_only=args.validate_only,
            verbose=args.verbose,
            resume=args.resume,
            rate_limit_ms=args.rate_limit,
        )
        stats = asyncio.run(run_import(container, config))
    except Exception:
        logger.exception("Fatal error")
        return 1

    return 1 if stats.movies_failed > 0 else 0


if __name__ == "__main__":
    raise SystemExit(main())
