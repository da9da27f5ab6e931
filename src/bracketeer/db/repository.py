"""
Repositories over a SQLAlchemy session.

These are the persistence seams the services depend on. They never commit:
all writes join the caller's transaction.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from bracketeer.db.models import Match, Tournament, TournamentEntry
from bracketeer.errors import MatchNotFound, TournamentNotFound
from bracketeer.statuses import BracketKind, EntryStatus, MatchStatus, TournamentStatus

logger = logging.getLogger(__name__)


def _value(raw) -> str:
    return raw.value if hasattr(raw, "value") else raw


class MatchRepository:
    """Match reads and writes scoped to one session."""

    def __init__(self, session: Session):
        self.session = session

    def create_match(self, **fields) -> Match:
        for key in ("bracket", "status"):
            if key in fields:
                fields[key] = _value(fields[key])
        match = Match(**fields)
        self.session.add(match)
        return match

    def update_match(self, match_id: int, **fields) -> Match:
        match = self.get_match(match_id)
        for key, value in fields.items():
            setattr(match, key, _value(value) if key in ("bracket", "status") else value)
        return match

    def get_match(self, match_id: int, lock: bool = False) -> Match:
        """
        Load a match by id.

        With ``lock=True`` the row is read with SELECT ... FOR UPDATE and any
        stale in-session copy is refreshed.

        Raises:
            MatchNotFound: if no match has this id
        """
        query = self.session.query(Match).filter(Match.id == match_id)
        if lock:
            # Refreshing a row must not discard its unflushed changes
            self.session.flush()
            query = query.with_for_update().populate_existing()
        match = query.one_or_none()
        if match is None:
            raise MatchNotFound(match_id)
        return match

    def find_match(
        self,
        tournament_id: int,
        bracket: BracketKind | str,
        round_no: int,
        match_number: int,
        lock: bool = False,
    ) -> Optional[Match]:
        """Look up a match by its bracket key, or None."""
        query = self.session.query(Match).filter(
            Match.tournament_id == tournament_id,
            Match.bracket == _value(bracket),
            Match.round == round_no,
            Match.match_number == match_number,
        )
        if lock:
            # Refreshing a row must not discard its unflushed changes
            self.session.flush()
            query = query.with_for_update().populate_existing()
        return query.one_or_none()

    def list_matches(
        self,
        tournament_id: int,
        bracket: Optional[BracketKind | str] = None,
        statuses: Optional[list[MatchStatus]] = None,
    ) -> list[Match]:
        """Matches of a tournament in creation order."""
        query = self.session.query(Match).filter(Match.tournament_id == tournament_id)
        if bracket is not None:
            query = query.filter(Match.bracket == _value(bracket))
        if statuses is not None:
            query = query.filter(Match.status.in_([_value(s) for s in statuses]))
        return query.order_by(Match.sequence, Match.id).all()

    def count_matches(self, tournament_id: int, statuses: Optional[list[MatchStatus]] = None) -> int:
        query = self.session.query(func.count(Match.id)).filter(Match.tournament_id == tournament_id)
        if statuses is not None:
            query = query.filter(Match.status.in_([_value(s) for s in statuses]))
        return query.scalar() or 0

    def max_round(self, tournament_id: int, bracket: BracketKind | str) -> int:
        """Highest persisted round of a bracket, 0 if the bracket is empty."""
        value = (
            self.session.query(func.max(Match.round))
            .filter(Match.tournament_id == tournament_id, Match.bracket == _value(bracket))
            .scalar()
        )
        return value or 0

    def draw_positions(
        self, tournament_id: int, bracket: BracketKind | str, round_no: int
    ) -> tuple[int, ...]:
        """Draw positions of the matches persisted for one round."""
        rows = (
            self.session.query(Match.draw_position)
            .filter(
                Match.tournament_id == tournament_id,
                Match.bracket == _value(bracket),
                Match.round == round_no,
            )
            .order_by(Match.draw_position)
            .all()
        )
        return tuple(row.draw_position for row in rows)


class TournamentRepository:
    """Tournament state reads and transitions."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, tournament_id: int, lock: bool = False) -> Tournament:
        """
        Raises:
            TournamentNotFound: if no tournament has this id
        """
        query = self.session.query(Tournament).filter(Tournament.id == tournament_id)
        if lock:
            # Refreshing a row must not discard its unflushed changes
            self.session.flush()
            query = query.with_for_update().populate_existing()
        tournament = query.one_or_none()
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament

    def update_tournament_status(
        self,
        tournament_id: int,
        status: TournamentStatus | str,
        winner_id: Optional[int] = None,
    ) -> Tournament:
        tournament = self.get(tournament_id)
        tournament.status = _value(status)
        if winner_id is not None:
            tournament.winner_id = winner_id
        logger.debug("Tournament %d -> %s (winner=%s)", tournament_id, tournament.status, winner_id)
        return tournament

    def claim_for_generation(self, tournament_id: int) -> bool:
        """
        Move registration_closed -> in_progress with a compare-and-set.

        Returns:
            True if this caller made the transition, False if another caller
            (or an earlier call) already did
        """
        result = self.session.execute(
            update(Tournament)
            .where(
                Tournament.id == tournament_id,
                Tournament.status == TournamentStatus.REGISTRATION_CLOSED.value,
            )
            .values(status=TournamentStatus.IN_PROGRESS.value)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def active_entries(self, tournament_id: int) -> list[TournamentEntry]:
        return (
            self.session.query(TournamentEntry)
            .filter(
                TournamentEntry.tournament_id == tournament_id,
                TournamentEntry.status == EntryStatus.ACTIVE.value,
            )
            .order_by(TournamentEntry.joined_at, TournamentEntry.id)
            .all()
        )
