"""
Read-only views of a bracket: grouped rounds for display and progress stats.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from bracketeer import bracket as draw
from bracketeer.db.models import Match
from bracketeer.db.repository import MatchRepository, TournamentRepository
from bracketeer.services.results import round_robin_standings
from bracketeer.statuses import (
    BracketKind,
    MatchStatus,
    TournamentFormat,
    get_status_group,
    normalize_status_filter,
)

logger = logging.getLogger(__name__)


def match_to_dict(match: Match) -> dict:
    return {
        "id": match.id,
        "bracket": match.bracket,
        "round": match.round,
        "match_number": match.match_number,
        "slot_a_id": match.slot_a_id,
        "slot_b_id": match.slot_b_id,
        "score_a": match.score_a,
        "score_b": match.score_b,
        "winner_id": match.winner_id,
        "status": match.status,
        "scheduled_at": match.scheduled_at.isoformat() if match.scheduled_at else None,
        "completed_at": match.completed_at.isoformat() if match.completed_at else None,
    }


def list_bracket_matches(
    session: Session,
    tournament_id: int,
    statuses: Optional[Iterable[str]] = None,
) -> list[Match]:
    """Matches filtered by raw status strings; unknown values are ignored."""
    return MatchRepository(session).list_matches(
        tournament_id, statuses=normalize_status_filter(statuses)
    )


def _round_label(tournament_format: TournamentFormat, bracket: str, round_no: int, total_rounds: int) -> str:
    if tournament_format == TournamentFormat.SINGLE_ELIMINATION:
        return draw.round_name(round_no, total_rounds)
    if tournament_format == TournamentFormat.ROUND_ROBIN:
        return f"Round {round_no}"
    if bracket == BracketKind.WINNERS.value:
        return f"Winners Round {round_no}"
    if bracket == BracketKind.LOSERS.value:
        return f"Losers Round {round_no}"
    # Finals rounds are R+1 (grand finals) and R+2 (reset)
    return "Grand Finals" if round_no == total_rounds + 1 else "Grand Finals (Reset)"


def bracket_overview(session: Session, tournament_id: int) -> dict:
    """
    Rounds grouped by bracket, in display order.

    Returns:
        {"tournament_id", "format", "status", "winner_id",
         "brackets": {bracket: [{"round", "name", "matches": [...]}, ...]},
         "standings": [...] (round robin only)}
    """
    tournament = TournamentRepository(session).get(tournament_id)
    tournament_format = TournamentFormat(tournament.format)
    matches = MatchRepository(session).list_matches(tournament_id)

    grouped: dict[str, dict[int, list[Match]]] = defaultdict(lambda: defaultdict(list))
    for match in matches:
        grouped[match.bracket][match.round].append(match)

    winner_rounds = max(grouped.get(BracketKind.WINNERS.value, {}).keys(), default=0)
    brackets: dict[str, list[dict]] = {}
    for kind in BracketKind:
        rounds = grouped.get(kind.value)
        if not rounds:
            continue
        brackets[kind.value] = [
            {
                "round": round_no,
                "name": _round_label(tournament_format, kind.value, round_no, winner_rounds),
                "matches": [
                    match_to_dict(m) for m in sorted(rounds[round_no], key=lambda m: m.match_number)
                ],
            }
            for round_no in sorted(rounds)
        ]

    overview = {
        "tournament_id": tournament.id,
        "name": tournament.name,
        "format": tournament.format,
        "status": tournament.status,
        "winner_id": tournament.winner_id,
        "brackets": brackets,
    }
    if tournament_format == TournamentFormat.ROUND_ROBIN:
        overview["standings"] = [row.to_dict() for row in round_robin_standings(session, tournament_id)]
    return overview


def tournament_progress(session: Session, tournament_id: int) -> dict:
    """
    Progress statistics for a tournament.

    Returns:
        {"total_matches", "by_status", "by_bracket", "completion_percentage",
         "current_round"}; ``current_round`` maps each bracket to its lowest
        round with an unfinished match, 0 once the bracket is done
    """
    TournamentRepository(session).get(tournament_id)
    matches = MatchRepository(session).list_matches(tournament_id)
    terminal = {s.value for s in get_status_group("terminal")}

    by_status = {status.value: 0 for status in MatchStatus}
    by_bracket: dict[str, dict[str, int]] = {}
    current_round: dict[str, int] = {}

    for match in matches:
        by_status[match.status] = by_status.get(match.status, 0) + 1
        bucket = by_bracket.setdefault(match.bracket, {"total": 0, "completed": 0})
        bucket["total"] += 1
        current_round.setdefault(match.bracket, 0)
        if match.status == MatchStatus.COMPLETED.value:
            bucket["completed"] += 1
        if match.status not in terminal:
            lowest = current_round[match.bracket]
            if lowest == 0 or match.round < lowest:
                current_round[match.bracket] = match.round

    total = len(matches)
    completed = by_status[MatchStatus.COMPLETED.value]
    percentage = round(completed / total * 100, 2) if total else 0.0

    return {
        "tournament_id": tournament_id,
        "total_matches": total,
        "by_status": by_status,
        "by_bracket": by_bracket,
        "completion_percentage": percentage,
        "current_round": current_round,
    }
