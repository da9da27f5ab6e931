"""
Bracket generation service: seeds a tournament and persists its bracket.

Generation happens exactly once per tournament, when registration is closed:

1. Take the tournament's advisory lock and lock the tournament row
2. Refuse if matches already exist (AlreadyGenerated) or the tournament is
   not 'registration_closed' (InvalidTournamentState)
3. Seed the active entries and build every match with the pure builder
4. Flip the tournament to 'in_progress' with a compare-and-set; losing that
   race also raises AlreadyGenerated
5. Insert all match rows and queue tournament_started notifications

Nothing is committed here. The caller's ``get_session()`` commits the whole
bracket at once, or rolls it back on any error.

Usage:
    from bracketeer.db import get_session
    from bracketeer.services.bracket_generation import generate_bracket

    with get_session() as session:
        stats = generate_bracket(session, tournament_id=42)
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from time import perf_counter
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bracketeer import bracket as draw
from bracketeer.config import settings
from bracketeer.db.repository import MatchRepository, TournamentRepository
from bracketeer.engine.builder import build
from bracketeer.errors import AlreadyGenerated, InvalidTournamentState
from bracketeer.locks import tournament_lock
from bracketeer.notifications import TOURNAMENT_STARTED, Notifier
from bracketeer.seeding import SeedingStrategy, get_seeding_strategy
from bracketeer.statuses import MatchStatus, TournamentFormat, TournamentStatus

logger = logging.getLogger(__name__)


@dataclass
class GenerationStats:
    """Statistics from one bracket generation."""

    tournament_id: int
    tournament_format: str = ""
    seeding: str = ""
    entrants: int = 0
    byes: int = 0
    matches_created: int = 0
    matches_scheduled: int = 0
    matches_pending: int = 0
    notifications_queued: int = 0
    match_ids: list[int] = field(default_factory=list)
    elapsed: float = 0.0

    def summary(self) -> str:
        """Return a human-readable summary of the generation."""
        lines = [
            f"Bracket generated for tournament {self.tournament_id}:",
            f"  Format:            {self.tournament_format}",
            f"  Seeding:           {self.seeding}",
            f"  Entrants:          {self.entrants}",
            f"  Byes:              {self.byes}",
            f"  Matches created:   {self.matches_created}",
            f"    scheduled:       {self.matches_scheduled}",
            f"    pending:         {self.matches_pending}",
            f"  Notifications:     {self.notifications_queued}",
            f"  Elapsed:           {self.elapsed:.2f}s",
        ]
        return "\n".join(lines)


def generate_bracket(
    session: Session,
    tournament_id: int,
    seeding: Optional[Union[SeedingStrategy, str]] = None,
) -> GenerationStats:
    """
    Generate and persist the full bracket for a tournament.

    Args:
        session: Database session (the caller owns the transaction)
        tournament_id: Tournament to generate
        seeding: Strategy instance or name; defaults to settings.default_seeding

    Returns:
        GenerationStats for the created bracket

    Raises:
        TournamentNotFound: unknown tournament
        AlreadyGenerated: matches exist, or a concurrent caller won the race
        InvalidTournamentState: tournament is not 'registration_closed'
        InsufficientEntrants: fewer than 2 active entries
        UnsupportedFormat: unknown tournament format
    """
    started_at = perf_counter()
    tournaments = TournamentRepository(session)
    matches = MatchRepository(session)

    tournament_lock(session, tournament_id)
    tournament = tournaments.get(tournament_id, lock=True)

    if matches.count_matches(tournament_id) > 0:
        raise AlreadyGenerated(tournament_id)
    if tournament.status != TournamentStatus.REGISTRATION_CLOSED.value:
        raise InvalidTournamentState(
            tournament_id, tournament.status, TournamentStatus.REGISTRATION_CLOSED.value
        )

    if seeding is None:
        seeding = settings.default_seeding
    strategy = get_seeding_strategy(seeding) if isinstance(seeding, str) else seeding

    entries = tournaments.active_entries(tournament_id)
    seeded = strategy.seed(entries)
    if len(seeded) > tournament.max_players:
        logger.warning(
            "Tournament %d has %d active entries but max_players=%d",
            tournament_id, len(seeded), tournament.max_players,
        )

    # Raises InsufficientEntrants / UnsupportedFormat before any state change
    plans = build(
        tournament.format,
        seeded,
        tournament.start_date,
        interval=timedelta(days=settings.round_interval_days),
    )

    if not tournaments.claim_for_generation(tournament_id):
        raise AlreadyGenerated(tournament_id)

    stats = GenerationStats(
        tournament_id=tournament_id,
        tournament_format=tournament.format,
        seeding=strategy.name,
        entrants=len(seeded),
    )
    if TournamentFormat(tournament.format) != TournamentFormat.ROUND_ROBIN:
        stats.byes = draw.draw_size(len(seeded)) - len(seeded)

    created = []
    for plan in plans:
        created.append(
            matches.create_match(
                tournament_id=tournament_id,
                bracket=plan.bracket,
                round=plan.round,
                match_number=plan.match_number,
                draw_position=plan.draw_position,
                sequence=plan.sequence,
                slot_a_id=plan.slot_a_id,
                slot_b_id=plan.slot_b_id,
                status=plan.status,
                scheduled_at=plan.scheduled_at,
            )
        )
        if plan.status == MatchStatus.SCHEDULED:
            stats.matches_scheduled += 1
        else:
            stats.matches_pending += 1

    try:
        session.flush()
    except IntegrityError as e:
        # Unique (tournament, bracket, round, match_number) caught a duplicate build
        logger.warning("Duplicate bracket rows for tournament %d: %s", tournament_id, e)
        raise AlreadyGenerated(tournament_id) from e

    stats.matches_created = len(created)
    stats.match_ids = [match.id for match in created]

    notifier = Notifier(session)
    stats.notifications_queued = notifier.notify_many(
        (entrant.entrant_id for entrant in seeded),
        TOURNAMENT_STARTED,
        {"tournament_id": tournament_id, "tournament_name": tournament.name},
    )

    stats.elapsed = perf_counter() - started_at
    logger.info(stats.summary())
    return stats
