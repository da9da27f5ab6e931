#!/usr/bin/env python3
"""
Generate the bracket for a tournament whose registration is closed.

Usage:
    python scripts/generate_bracket.py 42
    python scripts/generate_bracket.py 42 --seeding ranked
    python scripts/generate_bracket.py 42 --close-registration
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bracketeer.config import LOG_FORMATS, settings
from bracketeer.db import get_session
from bracketeer.db.repository import TournamentRepository
from bracketeer.errors import BracketError
from bracketeer.seeding import RandomSeeding
from bracketeer.services.bracket_generation import generate_bracket
from bracketeer.statuses import TournamentStatus

logging.basicConfig(
    level=settings.log_level,
    format=LOG_FORMATS[settings.log_format],
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Generate a tournament bracket")
    parser.add_argument("tournament_id", type=int, help="Tournament to generate")
    parser.add_argument(
        "--seeding",
        choices=["registration", "random", "ranked"],
        default=None,
        help=f"Seeding strategy (default: {settings.default_seeding})",
    )
    parser.add_argument(
        "--rng-seed", type=int, default=None,
        help="Seed for --seeding random, for a reproducible draw",
    )
    parser.add_argument(
        "--close-registration", action="store_true",
        help="Move an open tournament to registration_closed first",
    )
    args = parser.parse_args()

    seeding = args.seeding
    if seeding == "random":
        seeding = RandomSeeding(args.rng_seed)

    try:
        with get_session() as session:
            if args.close_registration:
                tournament = TournamentRepository(session).get(args.tournament_id)
                if tournament.status == TournamentStatus.REGISTRATION_OPEN.value:
                    tournament.status = TournamentStatus.REGISTRATION_CLOSED.value
                    session.flush()
            stats = generate_bracket(session, args.tournament_id, seeding=seeding)
    except BracketError as e:
        logger.error("Bracket generation failed: %s", e)
        return 1

    print(stats.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
