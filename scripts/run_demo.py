#!/usr/bin/env python3
"""
Headless demo run: the lever pulls a controlled reel machine in a loop.

Usage:
    python -m scripts.run_demo --reels 3 --cycles 5
    python -m scripts.run_demo --reels 5 --cycles 20 --seed 42 --fast
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from slotcore.config import settings
from slotcore.logic.demo import DemoDriver, FrameClock
from slotcore.logic.models import SYMBOL_INFO, Symbol
from slotcore.logic.rng import ProductionRNG, SeededRNG
from slotcore.validators import MAX_REELS, MIN_REELS


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run the slot demo headless")
    parser.add_argument(
        "--reels",
        type=int,
        choices=range(MIN_REELS, MAX_REELS + 1),
        default=3,
        help="Reel count",
    )
    parser.add_argument("--cycles", type=int, default=3, help="Spins to run")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Run ticks back to back instead of at the frame rate",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    rng = SeededRNG(args.seed) if args.seed is not None else ProductionRNG()
    driver = DemoDriver(
        args.reels,
        rng=rng,
        clock=FrameClock(realtime=not args.fast),
        on_message=lambda message: print(f"  | {message}"),
    )
    outcomes = asyncio.run(driver.run(args.cycles))

    print()
    for number, outcome in enumerate(outcomes, start=1):
        line = " ".join(SYMBOL_INFO[Symbol(s)].emoji for s in outcome.symbols)
        print(f"Spin {number}: {line}  {outcome.tier_name} ({outcome.payout} credits)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
