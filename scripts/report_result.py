#!/usr/bin/env python3
"""
Report a match score and progress the bracket.

Usage:
    python scripts/report_result.py 17 2 1
    python scripts/report_result.py 17 --start
    python scripts/report_result.py 17 --cancel
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bracketeer.config import LOG_FORMATS, settings
from bracketeer.db import get_session
from bracketeer.errors import BracketError
from bracketeer.services.match_admin import cancel_match, start_match
from bracketeer.services.results import report_result

logging.basicConfig(
    level=settings.log_level,
    format=LOG_FORMATS[settings.log_format],
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Report a match result")
    parser.add_argument("match_id", type=int)
    parser.add_argument("score_a", type=int, nargs="?")
    parser.add_argument("score_b", type=int, nargs="?")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--start", action="store_true", help="Mark the match in progress")
    action.add_argument("--cancel", action="store_true", help="Cancel the match")
    args = parser.parse_args()

    if not (args.start or args.cancel) and (args.score_a is None or args.score_b is None):
        parser.error("score_a and score_b are required when reporting a result")

    try:
        with get_session() as session:
            if args.start:
                match = start_match(session, args.match_id)
                print(f"Match {match.id} is now {match.status}")
            elif args.cancel:
                match = cancel_match(session, args.match_id)
                print(f"Match {match.id} is now {match.status}")
            else:
                report = report_result(session, args.match_id, args.score_a, args.score_b)
                print(report.summary())
    except (BracketError, ValueError) as e:
        logger.error("Could not update match %d: %s", args.match_id, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
