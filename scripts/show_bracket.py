#!/usr/bin/env python3
"""
Print a tournament bracket and its progress.

Usage:
    python scripts/show_bracket.py 42
    python scripts/show_bracket.py 42 --json
    python scripts/show_bracket.py 42 --status pending --status scheduled
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bracketeer.config import LOG_FORMATS, settings
from bracketeer.db import get_session
from bracketeer.errors import BracketError
from bracketeer.services.bracket_view import (
    bracket_overview,
    list_bracket_matches,
    match_to_dict,
    tournament_progress,
)

logging.basicConfig(
    level=settings.log_level,
    format=LOG_FORMATS[settings.log_format],
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _slot(entrant_id) -> str:
    return "TBD" if entrant_id is None else str(entrant_id)


def print_overview(overview: dict, progress: dict) -> None:
    print(f"{overview['name']} ({overview['format']}) - {overview['status']}")
    if overview["winner_id"] is not None:
        print(f"Winner: {overview['winner_id']}")
    print(
        f"Progress: {progress['by_status']['completed']}/{progress['total_matches']} "
        f"matches ({progress['completion_percentage']}%)"
    )

    for bracket, rounds in overview["brackets"].items():
        print(f"\n=== {bracket.upper()} ===")
        for round_info in rounds:
            print(f"  {round_info['name']}")
            for m in round_info["matches"]:
                score = f"{m['score_a']}-{m['score_b']}" if m["status"] == "completed" else ""
                print(
                    f"    #{m['match_number']:<3} {_slot(m['slot_a_id']):>6} vs "
                    f"{_slot(m['slot_b_id']):<6} [{m['status']}] {score}"
                )

    if "standings" in overview:
        print("\n=== STANDINGS ===")
        print(f"  {'#':<3} {'Entrant':<8} {'P':>3} {'W':>3} {'D':>3} {'L':>3} {'Pts':>4}")
        for i, row in enumerate(overview["standings"], start=1):
            print(
                f"  {i:<3} {row['entrant_id']:<8} {row['matches_played']:>3} {row['wins']:>3} "
                f"{row['draws']:>3} {row['losses']:>3} {row['points']:>4}"
            )


def main():
    parser = argparse.ArgumentParser(description="Show a tournament bracket")
    parser.add_argument("tournament_id", type=int)
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument(
        "--status", action="append", default=None,
        help="Only list matches with this status (repeatable)",
    )
    args = parser.parse_args()

    try:
        with get_session() as session:
            if args.status:
                matches = [
                    match_to_dict(m)
                    for m in list_bracket_matches(session, args.tournament_id, args.status)
                ]
                print(json.dumps(matches, indent=2))
                return 0

            overview = bracket_overview(session, args.tournament_id)
            progress = tournament_progress(session, args.tournament_id)
    except BracketError as e:
        logger.error("%s", e)
        return 1

    if args.json:
        print(json.dumps({"overview": overview, "progress": progress}, indent=2))
    else:
        print_overview(overview, progress)
    return 0


if __name__ == "__main__":
    sys.exit(main())
