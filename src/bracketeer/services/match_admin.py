"""
Manual match operations for tournament admins.

These cover what progression cannot decide on its own: overriding who
sits in a slot, starting and cancelling matches, and moving
a match to a new time. Like the other services they never commit.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from bracketeer.db.models import Match
from bracketeer.db.repository import MatchRepository, TournamentRepository
from bracketeer.errors import MatchNotReady, SlotConflict
from bracketeer.locks import tournament_lock
from bracketeer.notifications import MATCH_RESCHEDULED, MATCH_SCHEDULED, Notifier
from bracketeer.services.results import complete_tournament, round_robin_completion
from bracketeer.statuses import (
    MatchStatus,
    Slot,
    TournamentFormat,
    TournamentStatus,
    get_status_group,
)

logger = logging.getLogger(__name__)


def _locked_match(session: Session, match_id: int) -> Match:
    matches = MatchRepository(session)
    tournament_lock(session, matches.get_match(match_id).tournament_id)
    return matches.get_match(match_id, lock=True)


def assign_slot(
    session: Session,
    match_id: int,
    slot: Slot | str,
    entrant_id: int,
    replace: bool = False,
) -> Match:
    """
    Place an entrant into a match slot.

    A PENDING match whose other slot is already filled becomes SCHEDULED.

    Raises:
        MatchNotReady: the match is completed or cancelled
        SlotConflict: the slot holds another entrant and ``replace`` is False
    """
    slot = Slot(slot)
    match = _locked_match(session, match_id)
    if match.status in [s.value for s in get_status_group("terminal")]:
        raise MatchNotReady(match.id, f"status is '{match.status}'")

    occupant = match.occupant(slot.value)
    if occupant is not None and occupant != entrant_id and not replace:
        raise SlotConflict(match.id, slot.value, occupant, entrant_id)

    if slot == Slot.A:
        match.slot_a_id = entrant_id
    else:
        match.slot_b_id = entrant_id

    if match.status == MatchStatus.PENDING.value and match.has_both_slots:
        match.status = MatchStatus.SCHEDULED.value
        Notifier(session).notify_many(
            (match.slot_a_id, match.slot_b_id),
            MATCH_SCHEDULED,
            {"match_id": match.id, "tournament_id": match.tournament_id},
        )

    logger.info("Assigned entrant %d to match %d slot %s", entrant_id, match.id, slot.value)
    return match


def start_match(session: Session, match_id: int) -> Match:
    """SCHEDULED -> IN_PROGRESS."""
    match = _locked_match(session, match_id)
    if match.status != MatchStatus.SCHEDULED.value:
        raise MatchNotReady(match.id, f"only scheduled matches can start, status is '{match.status}'")
    match.status = MatchStatus.IN_PROGRESS.value
    logger.info("Match %d started", match.id)
    return match


def cancel_match(session: Session, match_id: int) -> Match:
    """
    Cancel a match whose entrants are known and which has no result yet.

    Cancelling the last open round-robin match completes the tournament
    (and pays its prizes) in the same transaction.

    Raises:
        MatchNotReady: the match is a placeholder or already completed
    """
    match = _locked_match(session, match_id)
    if match.status == MatchStatus.COMPLETED.value:
        raise MatchNotReady(match.id, "completed matches cannot be cancelled")
    if MatchStatus(match.status) not in get_status_group("filled"):
        raise MatchNotReady(match.id, "placeholders cannot be cancelled until both slots are filled")
    match.status = MatchStatus.CANCELLED.value
    session.flush()
    logger.info("Match %d cancelled", match.id)

    tournament = TournamentRepository(session).get(match.tournament_id)
    if (
        TournamentFormat(tournament.format) == TournamentFormat.ROUND_ROBIN
        and tournament.status == TournamentStatus.IN_PROGRESS.value
    ):
        completion = round_robin_completion(session, tournament.id)
        if completion is not None:
            complete_tournament(session, tournament.id, completion)
    return match


def reschedule_match(session: Session, match_id: int, scheduled_at: datetime) -> Match:
    """Move a match to a new time and tell both entrants."""
    match = _locked_match(session, match_id)
    if match.status in [s.value for s in get_status_group("terminal")]:
        raise MatchNotReady(match.id, f"status is '{match.status}'")

    previous = match.scheduled_at
    match.scheduled_at = scheduled_at
    Notifier(session).notify_many(
        (match.slot_a_id, match.slot_b_id),
        MATCH_RESCHEDULED,
        {
            "match_id": match.id,
            "tournament_id": match.tournament_id,
            "previous": previous,
            "scheduled_at": scheduled_at,
        },
    )
    logger.info("Match %d rescheduled from %s to %s", match.id, previous, scheduled_at)
    return match
