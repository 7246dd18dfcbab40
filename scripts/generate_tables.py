#!/usr/bin/env python3
"""
Override table generator.

Enumerates every combination for each reel count, diffs the closed-form
matcher against the exact rules, verifies the result by brute force and
writes one JSON artifact per reel count.

Usage:
    python -m scripts.generate_tables --out payout_tables
    python -m scripts.generate_tables --reels 3 4 5 --out payout_tables
    python -m scripts.generate_tables --reels 6 --layout chunked --out payout_tables
"""
import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from slotcore.config import settings
from slotcore.config_hash import get_config_hash
from slotcore.errors import TableInconsistencyError
from slotcore.logic.table_builder import GenerationReport, build_table
from slotcore.logic.tables import artifact_path, save_table
from slotcore.protocol import TableLayout
from slotcore.validators import MAX_REELS, MIN_REELS


def print_report(report: GenerationReport, elapsed: float) -> None:
    print(f"\n{report.reel_count} reels")
    print(f"  combinations:      {report.total_combinations}")
    print(f"  overrides:         {report.override_count}")
    print(f"  compression:       {report.compression_ratio:.2%}")
    print(f"  layout:            {report.layout}")
    print(f"  hit rate:          {report.hit_rate():.2%}")
    print(f"  verified:          {report.verified}")
    print(f"  elapsed:           {elapsed:.2f}s")
    for tier, count in sorted(report.tier_counts.items()):
        print(f"    {tier:<14} {count}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Generate payout override tables")
    parser.add_argument(
        "--reels",
        type=int,
        nargs="+",
        choices=range(MIN_REELS, MAX_REELS + 1),
        default=list(range(MIN_REELS, MAX_REELS + 1)),
        help="Reel counts to generate (default: all)",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=settings.tables_dir,
        help="Output directory for payout_table_<n>.json",
    )
    parser.add_argument(
        "--layout",
        choices=[layout.value for layout in TableLayout],
        default=None,
        help="Force a storage layout (default: chunked for 7 reels, otherwise "
             "flat, packed above the threshold)",
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip the brute-force verification pass",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Also write a JSON summary to this path",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    layout = TableLayout(args.layout) if args.layout else None
    print(f"Rules hash: {get_config_hash()}")
    print(f"Packing threshold: {settings.packing_threshold}")

    reports = []
    for reel_count in args.reels:
        started = time.perf_counter()
        try:
            table, report = build_table(reel_count, layout=layout, verify=not args.no_verify)
        except TableInconsistencyError as e:
            print(f"\nFAILED {reel_count} reels: {e.message}", file=sys.stderr)
            return 1
        save_table(table, artifact_path(reel_count, args.out))
        print_report(report, time.perf_counter() - started)
        reports.append(report.to_dict())

    if args.report:
        report_path = Path(args.report)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(json.dumps(
            {"rules_hash": get_config_hash(), "tables": reports}, indent=2
        ))
        print(f"\nReport written to {report_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
