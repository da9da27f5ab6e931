"""
Result reporting service: records a score and progresses the bracket.

``report_result`` is the single entry point for match results. Within the
caller's transaction it:

1. Locks the tournament (advisory lock) and the reported match row
2. Validates the score and picks the winner (or a round-robin draw)
3. Marks the match COMPLETED
4. Applies the progressor's slot fills to locked downstream rows, flipping
   PENDING matches to SCHEDULED once both slots are known
5. Completes the tournament and pays prizes when the bracket is decided
6. Queues match_result / match_scheduled / tournament_completed /
   prize_awarded notifications

Any error propagates and the caller's session rolls everything back, so a
result is either fully applied or not at all.

Usage:
    from bracketeer.db import get_session
    from bracketeer.services.results import report_result

    with get_session() as session:
        report = report_result(session, match_id=17, score_a=2, score_b=1)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from bracketeer.db.models import Match, Tournament
from bracketeer.db.repository import MatchRepository, TournamentRepository
from bracketeer.engine.prizes import Payout, plan_payouts
from bracketeer.engine.progression import (
    BracketShape,
    CompletedMatch,
    SlotFill,
    TournamentCompletion,
    progressor_for,
    resolve_winner,
)
from bracketeer.engine.standings import StandingRow, compute_standings
from bracketeer.errors import DownstreamMatchMissing, InvalidTournamentState, SlotConflict
from bracketeer.ledger import WalletLedger
from bracketeer.locks import tournament_lock
from bracketeer.notifications import (
    MATCH_RESULT,
    MATCH_SCHEDULED,
    PRIZE_AWARDED,
    TOURNAMENT_COMPLETED,
    Notifier,
)
from bracketeer.seeding import RegistrationOrderSeeding
from bracketeer.statuses import (
    BracketKind,
    MatchStatus,
    TournamentFormat,
    TournamentStatus,
    get_status_group,
)

logger = logging.getLogger(__name__)

PLACE_LABELS = {"first": "1st", "second": "2nd", "third": "3rd"}


@dataclass
class ResultReport:
    """What a single reported result changed."""

    match_id: int
    winner_id: Optional[int] = None
    is_draw: bool = False
    slots_filled: int = 0
    newly_scheduled: list[int] = field(default_factory=list)
    tournament_completed: bool = False
    tournament_winner_id: Optional[int] = None
    payouts: list[Payout] = field(default_factory=list)

    def summary(self) -> str:
        outcome = "draw" if self.is_draw else f"winner={self.winner_id}"
        line = (
            f"Match {self.match_id} reported ({outcome}): "
            f"{self.slots_filled} slot(s) filled, "
            f"{len(self.newly_scheduled)} match(es) scheduled"
        )
        if self.tournament_completed:
            paid = sum((p.amount for p in self.payouts), Decimal("0"))
            line += f"; tournament won by {self.tournament_winner_id}, {paid} paid out"
        return line


def report_result(session: Session, match_id: int, score_a: int, score_b: int) -> ResultReport:
    """
    Record a match result and apply its progression.

    Args:
        session: Database session (the caller owns the transaction)
        match_id: Reported match
        score_a: Score of slot A
        score_b: Score of slot B

    Returns:
        ResultReport describing the changes

    Raises:
        MatchNotFound: unknown match
        InvalidTournamentState: tournament is not in progress
        MatchNotReady: match not SCHEDULED/IN_PROGRESS or a slot is empty
        AmbiguousResult: tie in an elimination format
        DownstreamMatchMissing: a routing target does not exist
        SlotConflict: a routing target slot holds a different entrant
    """
    matches = MatchRepository(session)
    tournaments = TournamentRepository(session)

    tournament_id = matches.get_match(match_id).tournament_id
    tournament_lock(session, tournament_id)
    match = matches.get_match(match_id, lock=True)
    tournament = tournaments.get(tournament_id)
    if tournament.status != TournamentStatus.IN_PROGRESS.value:
        raise InvalidTournamentState(
            tournament_id, tournament.status, TournamentStatus.IN_PROGRESS.value
        )

    progressor = progressor_for(tournament.format)
    winner_id = resolve_winner(match, score_a, score_b, progressor.allows_draws)

    match.score_a = score_a
    match.score_b = score_b
    match.winner_id = winner_id
    match.status = MatchStatus.COMPLETED.value
    match.completed_at = datetime.utcnow()
    session.flush()

    report = ResultReport(match_id=match.id, winner_id=winner_id, is_draw=winner_id is None)
    notifier = Notifier(session)
    notifier.notify_many(
        (match.slot_a_id, match.slot_b_id),
        MATCH_RESULT,
        {
            "match_id": match.id,
            "tournament_id": tournament_id,
            "score_a": score_a,
            "score_b": score_b,
            "winner_id": winner_id,
        },
    )

    shape = _bracket_shape(matches, tournament)
    effects = progressor.advance(CompletedMatch.from_match(match), shape)

    for fill in effects.slot_fills:
        target, became_scheduled = _apply_slot_fill(matches, tournament_id, fill)
        report.slots_filled += 1
        if became_scheduled:
            report.newly_scheduled.append(target.id)
            notifier.notify_many(
                (target.slot_a_id, target.slot_b_id),
                MATCH_SCHEDULED,
                {
                    "match_id": target.id,
                    "tournament_id": tournament_id,
                    "bracket": target.bracket,
                    "round": target.round,
                    "scheduled_at": target.scheduled_at,
                },
            )

    completion = effects.completion
    if completion is None and effects.check_round_robin_completion:
        completion = round_robin_completion(session, tournament_id)

    if completion is not None:
        if TournamentFormat(tournament.format) == TournamentFormat.DOUBLE_ELIMINATION:
            completion = TournamentCompletion(
                winner_id=completion.winner_id,
                runner_up_id=completion.runner_up_id,
                third_place_id=_losers_final_loser(matches, tournament_id, shape),
            )
        report.payouts = complete_tournament(session, tournament_id, completion, notifier)
        report.tournament_completed = True
        report.tournament_winner_id = completion.winner_id

    logger.info(report.summary())
    return report


def _bracket_shape(matches: MatchRepository, tournament: Tournament) -> BracketShape:
    winner_rounds = matches.max_round(tournament.id, BracketKind.WINNERS)
    if TournamentFormat(tournament.format) != TournamentFormat.DOUBLE_ELIMINATION:
        return BracketShape(winner_rounds=winner_rounds)
    return BracketShape(
        winner_rounds=winner_rounds,
        first_round_positions=matches.draw_positions(tournament.id, BracketKind.WINNERS, 1),
    )


def _apply_slot_fill(
    matches: MatchRepository, tournament_id: int, fill: SlotFill
) -> tuple[Match, bool]:
    """Write one entrant into one slot of a locked target match."""
    target = matches.find_match(
        tournament_id, fill.bracket, fill.round, fill.match_number, lock=True
    )
    if target is None:
        raise DownstreamMatchMissing(
            tournament_id, fill.bracket.value, fill.round, fill.match_number
        )

    occupant = target.occupant(fill.slot.value)
    if occupant is not None and occupant != fill.entrant_id:
        raise SlotConflict(target.id, fill.slot.value, occupant, fill.entrant_id)

    if fill.slot.value == "a":
        target.slot_a_id = fill.entrant_id
    else:
        target.slot_b_id = fill.entrant_id

    became_scheduled = False
    if target.status == MatchStatus.PENDING.value and target.has_both_slots:
        target.status = MatchStatus.SCHEDULED.value
        became_scheduled = True

    logger.debug(
        "Placed entrant %d in %s R%d #%d slot %s",
        fill.entrant_id, fill.bracket.value, fill.round, fill.match_number, fill.slot.value,
    )
    return target, became_scheduled


def _losers_final_loser(
    matches: MatchRepository, tournament_id: int, shape: BracketShape
) -> Optional[int]:
    losers_final = matches.find_match(tournament_id, BracketKind.LOSERS, shape.loser_rounds, 1)
    if losers_final is None or losers_final.winner_id is None:
        return None
    return CompletedMatch.from_match(losers_final).loser_id


def round_robin_completion(session: Session, tournament_id: int) -> Optional[TournamentCompletion]:
    """Completion once no match is left open, decided by the standings."""
    open_count = MatchRepository(session).count_matches(
        tournament_id, statuses=list(get_status_group("open"))
    )
    if open_count:
        return None

    standings = round_robin_standings(session, tournament_id)
    if not standings:
        return None
    runner_up = standings[1].entrant_id if len(standings) > 1 else None
    return TournamentCompletion(winner_id=standings[0].entrant_id, runner_up_id=runner_up)


def round_robin_standings(session: Session, tournament_id: int) -> list[StandingRow]:
    """Current standings, every active entrant included, leader first."""
    entries = TournamentRepository(session).active_entries(tournament_id)
    seeds = {entrant.entrant_id: entrant.seed for entrant in RegistrationOrderSeeding().seed(entries)}
    completed = MatchRepository(session).list_matches(
        tournament_id, statuses=[MatchStatus.COMPLETED]
    )
    return compute_standings(completed, seeds)


def complete_tournament(
    session: Session,
    tournament_id: int,
    completion: TournamentCompletion,
    notifier: Optional[Notifier] = None,
) -> list[Payout]:
    """
    Mark the tournament completed and pay its prize pool once.

    Returns:
        Payouts written by this call (empty if prizes were already paid)
    """
    tournaments = TournamentRepository(session)
    notifier = notifier or Notifier(session)

    tournament = tournaments.get(tournament_id, lock=True)
    tournaments.update_tournament_status(
        tournament_id, TournamentStatus.COMPLETED, winner_id=completion.winner_id
    )

    entrant_ids = [entry.entrant_id for entry in tournaments.active_entries(tournament_id)]
    notifier.notify_many(
        entrant_ids,
        TOURNAMENT_COMPLETED,
        {
            "tournament_id": tournament_id,
            "tournament_name": tournament.name,
            "winner_id": completion.winner_id,
        },
    )

    if tournament.prizes_distributed:
        logger.info("Prizes for tournament %d already distributed", tournament_id)
        return []

    payouts = _distribute_prizes(session, tournament, completion, notifier)
    tournament.prizes_distributed = True
    session.flush()

    logger.info(
        "Tournament %d completed: winner=%s runner_up=%s third=%s",
        tournament_id, completion.winner_id, completion.runner_up_id, completion.third_place_id,
    )
    return payouts


def _distribute_prizes(
    session: Session,
    tournament: Tournament,
    completion: TournamentCompletion,
    notifier: Notifier,
) -> list[Payout]:
    pool = tournament.prize_pool or Decimal("0")
    if pool <= 0:
        return []

    ledger = WalletLedger(session)
    payouts = plan_payouts(
        pool,
        winner_id=completion.winner_id,
        runner_up_id=completion.runner_up_id,
        third_place_id=completion.third_place_id,
    )
    for payout in payouts:
        label = PLACE_LABELS[payout.place]
        ledger.credit_wallet(payout.entrant_id, payout.amount)
        ledger.record_transaction(
            payout.entrant_id,
            "tournament_prize",
            payout.amount,
            f"{label} place prize - {tournament.name}",
        )
        notifier.notify(
            payout.entrant_id,
            PRIZE_AWARDED,
            {
                "tournament_id": tournament.id,
                "tournament_name": tournament.name,
                "place": payout.place,
                "amount": payout.amount,
            },
        )
        logger.info(
            "Paid %s place prize %s to entrant %d for tournament %d",
            label, payout.amount, payout.entrant_id, tournament.id,
        )
    return payouts
