"""
Bracket builder: turns a seeded entrant list into match placeholders.

The builder is pure. It returns :class:`MatchPlan` values and never touches
the database; ``bracketeer.services.bracket_generation`` persists them.

Formats:
- Single elimination: round 1 crosses high and low seeds over the full
  power-of-two draw. Byes get no round-1 row; the bye entrant is written
  straight into its round-2 slot. Later rounds are placeholders.
- Double elimination: a winners bracket identical to single elimination,
  a losers bracket of 2R-1 rounds and two grand-finals matches (the second
  one only used after a bracket reset).
- Round robin: circle method, every pairing created SCHEDULED.

``match_number`` restarts at 1 for every (bracket, round). ``sequence`` is a
single running number across the whole build.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from itertools import count
from typing import Callable, Iterator, Optional, Sequence

from bracketeer import bracket as draw
from bracketeer.errors import InsufficientEntrants, UnsupportedFormat
from bracketeer.seeding import Entrant
from bracketeer.statuses import BracketKind, MatchStatus, Slot, TournamentFormat


@dataclass
class MatchPlan:
    """A match row to be created by the generation service."""

    bracket: BracketKind
    round: int
    match_number: int
    draw_position: int
    sequence: int
    slot_a_id: Optional[int] = None
    slot_b_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None

    @property
    def status(self) -> MatchStatus:
        if self.slot_a_id is not None and self.slot_b_id is not None:
            return MatchStatus.SCHEDULED
        return MatchStatus.PENDING

    @property
    def key(self) -> tuple[BracketKind, int, int]:
        return (self.bracket, self.round, self.match_number)


BuildFn = Callable[[Sequence[Entrant], datetime, timedelta, Iterator[int]], list[MatchPlan]]


def build(
    tournament_format: TournamentFormat | str,
    seeded_entrants: Sequence[Entrant],
    start_date: datetime,
    interval: timedelta = timedelta(days=1),
) -> list[MatchPlan]:
    """
    Build every match of a bracket.

    Args:
        tournament_format: One of the TournamentFormat values
        seeded_entrants: Entrants ordered by seed (index 0 = seed 1)
        start_date: Planned start of round 1
        interval: Calendar offset between rounds

    Returns:
        MatchPlans ordered by sequence

    Raises:
        UnsupportedFormat: if no builder exists for the format
        InsufficientEntrants: if fewer than 2 entrants are given
    """
    try:
        builder = _BUILDERS[TournamentFormat(tournament_format)]
    except (ValueError, KeyError):
        raise UnsupportedFormat(str(tournament_format)) from None

    if len(seeded_entrants) < 2:
        raise InsufficientEntrants(len(seeded_entrants))

    sequence = count(1)
    return builder(seeded_entrants, start_date, interval, sequence)


def _winners_bracket(
    entrants: Sequence[Entrant],
    start_date: datetime,
    interval: timedelta,
    sequence: Iterator[int],
) -> list[MatchPlan]:
    """Round 1 pairings plus placeholder rounds, byes pre-filled into round 2."""
    ids = [entrant.entrant_id for entrant in entrants]
    total_rounds = draw.winners_round_count(len(ids))
    plans: list[MatchPlan] = []

    # Bye entrants keyed by their round-2 position
    byes: dict[int, dict[Slot, int]] = {}
    match_number = count(1)
    for position, index_a, index_b in draw.first_round_pairings(len(ids)):
        if index_b is None:
            target = draw.get_next_draw_position(position)
            byes.setdefault(target, {})[draw.slot_for_position(position)] = ids[index_a]
            continue
        plans.append(
            MatchPlan(
                bracket=BracketKind.WINNERS,
                round=1,
                match_number=next(match_number),
                draw_position=position,
                sequence=next(sequence),
                slot_a_id=ids[index_a],
                slot_b_id=ids[index_b],
                scheduled_at=start_date,
            )
        )

    for round_no in range(2, total_rounds + 1):
        for position in range(1, draw.matches_in_round(total_rounds, round_no) + 1):
            prefilled = byes.get(position, {}) if round_no == 2 else {}
            plans.append(
                MatchPlan(
                    bracket=BracketKind.WINNERS,
                    round=round_no,
                    match_number=position,
                    draw_position=position,
                    sequence=next(sequence),
                    slot_a_id=prefilled.get(Slot.A),
                    slot_b_id=prefilled.get(Slot.B),
                    scheduled_at=start_date + interval * (round_no - 1),
                )
            )

    return plans


def _build_single_elimination(
    entrants: Sequence[Entrant],
    start_date: datetime,
    interval: timedelta,
    sequence: Iterator[int],
) -> list[MatchPlan]:
    return _winners_bracket(entrants, start_date, interval, sequence)


def _build_double_elimination(
    entrants: Sequence[Entrant],
    start_date: datetime,
    interval: timedelta,
    sequence: Iterator[int],
) -> list[MatchPlan]:
    plans = _winners_bracket(entrants, start_date, interval, sequence)

    winner_rounds = draw.winners_round_count(len(entrants))
    first_round_matches = draw.matches_in_round(winner_rounds, 1)
    loser_rounds = draw.losers_round_count(winner_rounds)

    for round_no in range(1, loser_rounds + 1):
        # Losers round 1 plays the day after winners round 1
        offset = 1 if round_no == 1 else round_no + 1
        for position in range(1, draw.losers_matches_in_round(round_no, first_round_matches) + 1):
            plans.append(
                MatchPlan(
                    bracket=BracketKind.LOSERS,
                    round=round_no,
                    match_number=position,
                    draw_position=position,
                    sequence=next(sequence),
                    scheduled_at=start_date + interval * offset,
                )
            )

    for match_number in (1, 2):
        plans.append(
            MatchPlan(
                bracket=BracketKind.FINALS,
                round=winner_rounds + match_number,
                match_number=match_number,
                draw_position=match_number,
                sequence=next(sequence),
                scheduled_at=start_date + interval * (loser_rounds + 1 + match_number),
            )
        )

    return plans


def _build_round_robin(
    entrants: Sequence[Entrant],
    start_date: datetime,
    interval: timedelta,
    sequence: Iterator[int],
) -> list[MatchPlan]:
    ids = [entrant.entrant_id for entrant in entrants]
    plans: list[MatchPlan] = []

    for round_no, pairings in enumerate(draw.circle_rounds(ids), start=1):
        match_number = count(1)
        for slot_a, slot_b in pairings:
            if slot_a is None or slot_b is None:
                continue  # bye
            number = next(match_number)
            plans.append(
                MatchPlan(
                    bracket=BracketKind.WINNERS,
                    round=round_no,
                    match_number=number,
                    draw_position=number,
                    sequence=next(sequence),
                    slot_a_id=slot_a,
                    slot_b_id=slot_b,
                    scheduled_at=start_date + interval * (round_no - 1),
                )
            )

    return plans


_BUILDERS: dict[TournamentFormat, BuildFn] = {
    TournamentFormat.SINGLE_ELIMINATION: _build_single_elimination,
    TournamentFormat.DOUBLE_ELIMINATION: _build_double_elimination,
    TournamentFormat.ROUND_ROBIN: _build_round_robin,
}
