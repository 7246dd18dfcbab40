#!/usr/bin/env python3
"""
Override table verifier.

Reloads stored artifacts and re-runs the brute-force consistency check.
Exits 1 if any artifact is missing, stale or inconsistent.

Usage:
    python -m scripts.verify_tables
    python -m scripts.verify_tables --dir payout_tables --reels 3 4 5
"""
import argparse
import logging
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from slotcore.config import settings
from slotcore.errors import TableArtifactError, TableInconsistencyError
from slotcore.logic.table_builder import verify_table
from slotcore.logic.tables import artifact_path, load_table
from slotcore.validators import MAX_REELS, MIN_REELS


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Verify stored payout override tables")
    parser.add_argument(
        "--dir",
        type=str,
        default=settings.tables_dir,
        help="Directory holding payout_table_<n>.json",
    )
    parser.add_argument(
        "--reels",
        type=int,
        nargs="+",
        choices=range(MIN_REELS, MAX_REELS + 1),
        default=list(range(MIN_REELS, MAX_REELS + 1)),
        help="Reel counts to verify (default: all)",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    failures = 0
    for reel_count in args.reels:
        path = artifact_path(reel_count, args.dir)
        if not path.exists():
            print(f"MISSING {reel_count} reels: {path}")
            failures += 1
            continue
        try:
            table = load_table(path)
            checked = verify_table(reel_count, table)
        except (TableArtifactError, TableInconsistencyError) as e:
            print(f"FAILED  {reel_count} reels: {e.message}")
            failures += 1
            continue
        print(f"OK      {reel_count} reels: {checked} combinations, "
              f"{len(table)} overrides ({table.layout.value})")

    if failures:
        print(f"\n{failures} table(s) failed verification")
        return 1
    print("\nAll tables verified")
    return 0


if __name__ == "__main__":
    sys.exit(main())
