"""CLI entry point for the course content sync."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from apps.sync.orchestrator import SyncResult
from csync.pipeline import bootstrap_sync, run_sync


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rebuild the synchronized course tables and artifacts from a content tree."
    )
    parser.add_argument(
        "--content-root",
        default=None,
        help="Directory holding one subdirectory per course (default: current directory)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional sync YAML (store, buckets, content conventions, log_dir).",
    )
    parser.add_argument(
        "--store-url",
        default=None,
        help="Override the store base URL (otherwise store.url or $SUPABASE_URL).",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for sync_provenance.jsonl (default: <config dir or content root>/logs)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Walk, parse and package everything without touching the store.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress the summary line on stdout.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _resolve_optional(value: str | None) -> Path | None:
    if value is None:
        return None
    return Path(value).expanduser().resolve()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config_path = _resolve_optional(args.config)
        if config_path is not None and not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        ctx = bootstrap_sync(
            config_path,
            content_root=_resolve_optional(args.content_root),
            store_url=args.store_url,
            log_dir=_resolve_optional(args.log_dir),
        )
        result = run_sync(ctx, dry_run=args.dry_run)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    if not result.success:
        location = result.error_path or "<unknown>"
        print(f"[sync] halted at {location}: {result.error}", file=sys.stderr)
        return 1
    _print_summary(result, quiet=args.quiet)
    return 0


def _print_summary(result: SyncResult, *, quiet: bool = False) -> None:
    if quiet:
        return
    counters = " | ".join(f"{label}={count}" for label, count in result.counters().items())
    mode = "dry-run" if result.dry_run else "synced"
    duration = result.duration_seconds
    timing = f" in {duration:.2f}s" if duration is not None else ""
    print(f"[sync] {mode}{timing}: {counters}")


if __name__ == "__main__":
    sys.exit(main())
