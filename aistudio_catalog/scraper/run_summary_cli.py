from __future__ import annotations

"""CLI helper for printing checkpoint progress and the last run summary."""

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .config import ScraperConfig
from .error_codes import ScrapeError
from .state import load_checkpoint
from .utils import load_json_file, setup_run_logger


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the run summary CLI."""

    parser = argparse.ArgumentParser(
        description="Show scrape progress from the checkpoint and the last run summary.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory holding checkpoint.json and last_summary.json.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the last run summary as JSON.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the run summary CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    cfg = (
        ScraperConfig.for_output_dir(args.output_dir)
        if args.output_dir is not None
        else ScraperConfig.from_env()
    )
    summary = load_json_file(cfg.summary_file)

    if args.json:
        if summary is None:
            parser.error(f"No run summary at {cfg.summary_file}")
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0

    # Checkpoint loading logs; keep those lines out of the printed report.
    try:
        setup_run_logger(cfg.log_dir, prefix="summary", console=False)
    except OSError as exc:
        print(f"Log directory {cfg.log_dir} unavailable: {exc}", file=sys.stderr)

    try:
        checkpoint = load_checkpoint(cfg.checkpoint_file)
    except ScrapeError as exc:
        parser.error(str(exc))

    if checkpoint.is_empty:
        print(f"Checkpoint {cfg.checkpoint_file}: no pages saved yet")
    else:
        print(f"Checkpoint {cfg.checkpoint_file}")
        print(f"  last page: {checkpoint.last_page + 1}")
        print(f"  records: {len(checkpoint.apps)}")
        print(f"  total apps: {checkpoint.total_apps}")
        print(f"  next id: {checkpoint.next_app_id}")

    if isinstance(summary, dict):
        print(f"\nLast run: {summary.get('status')} (phase={summary.get('phase')})")
        if summary.get("error_code"):
            print(f"  error: {summary.get('error_code')}: {summary.get('error')}")
            print(f"  exit code: {summary.get('exit_code')}")
        print(f"  pages processed: {summary.get('pages_processed')}")
        print(f"  records added: {summary.get('records_added')}")

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
