"""
Progression resolver: decides where a completed match sends its entrants.

A completed match produces up to two independent :class:`SlotFill` effects,
each targeting a (bracket, round, match_number) key, and optionally a
:class:`TournamentCompletion`. This module only computes those effects; the
results service applies them to locked rows inside one transaction.

One progressor exists per tournament format:

- SingleEliminationProgressor: winner to round+1, completion after the final
- DoubleEliminationProgressor: dispatches on the bracket kind to a winners,
  losers or finals handler
- RoundRobinProgressor: no routing; asks the service to check whether the
  last open match just finished
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from bracketeer import bracket as draw
from bracketeer.errors import AmbiguousResult, MatchNotReady, UnsupportedFormat
from bracketeer.statuses import (
    BracketKind,
    MatchStatus,
    Slot,
    TournamentFormat,
    get_status_group,
)


@dataclass(frozen=True)
class SlotFill:
    """Write ``entrant_id`` into one slot of the match at the given key."""

    bracket: BracketKind
    round: int
    match_number: int
    slot: Slot
    entrant_id: int


@dataclass(frozen=True)
class TournamentCompletion:
    winner_id: int
    runner_up_id: Optional[int] = None
    # Filled in by the results service for double elimination
    third_place_id: Optional[int] = None


@dataclass
class ProgressionEffects:
    slot_fills: list[SlotFill] = field(default_factory=list)
    completion: Optional[TournamentCompletion] = None
    # Round robin has no final match; the service checks for open matches.
    check_round_robin_completion: bool = False


@dataclass(frozen=True)
class BracketShape:
    """
    Round counts read from the persisted bracket.

    ``first_round_positions`` lists the draw positions of the winners
    round 1 matches that were created. None means a full draw with no byes.
    """

    winner_rounds: int
    first_round_positions: Optional[tuple[int, ...]] = None

    @property
    def loser_rounds(self) -> int:
        return draw.losers_round_count(self.winner_rounds)

    @property
    def grand_finals_round(self) -> int:
        return self.winner_rounds + 1

    def losers_feeds(self) -> dict[tuple[int, int], frozenset[Slot]]:
        positions = self.first_round_positions
        if positions is None:
            positions = tuple(range(1, draw.matches_in_round(self.winner_rounds, 1) + 1))
        return draw.losers_feeds(self.winner_rounds, positions)


@dataclass(frozen=True)
class CompletedMatch:
    """The fields of a completed match that routing depends on."""

    id: Optional[int]
    bracket: BracketKind
    round: int
    match_number: int
    draw_position: int
    slot_a_id: int
    slot_b_id: int
    winner_id: Optional[int]

    @property
    def loser_id(self) -> int:
        return self.slot_b_id if self.winner_id == self.slot_a_id else self.slot_a_id

    @classmethod
    def from_match(cls, match) -> "CompletedMatch":
        return cls(
            id=match.id,
            bracket=BracketKind(match.bracket),
            round=match.round,
            match_number=match.match_number,
            draw_position=match.draw_position or match.match_number,
            slot_a_id=match.slot_a_id,
            slot_b_id=match.slot_b_id,
            winner_id=match.winner_id,
        )


def resolve_winner(match, score_a: int, score_b: int, allows_draws: bool) -> Optional[int]:
    """
    Validate a reported score and pick the winning entrant.

    Args:
        match: Any object with id, status, slot_a_id and slot_b_id
        score_a: Score of slot A (non-negative)
        score_b: Score of slot B (non-negative)
        allows_draws: True for round robin, where a tie is a draw

    Returns:
        Winning entrant id, or None for a round-robin draw

    Raises:
        ValueError: negative score
        MatchNotReady: match is not SCHEDULED/IN_PROGRESS or a slot is empty
        AmbiguousResult: tie in a format that needs a winner
    """
    if score_a < 0 or score_b < 0:
        raise ValueError(f"Scores must be non-negative, got {score_a}-{score_b}")
    if MatchStatus(match.status) not in get_status_group("reportable"):
        raise MatchNotReady(match.id, f"status is '{MatchStatus(match.status).value}'")
    if match.slot_a_id is None or match.slot_b_id is None:
        raise MatchNotReady(match.id, "both slots must be filled")

    if score_a > score_b:
        return match.slot_a_id
    if score_b > score_a:
        return match.slot_b_id
    if not allows_draws:
        raise AmbiguousResult(match.id, score_a)
    return None


class BracketProgressor(Protocol):
    allows_draws: bool

    def advance(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        ...


class SingleEliminationProgressor:
    allows_draws = False

    def advance(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        if match.round >= shape.winner_rounds:
            return ProgressionEffects(
                completion=TournamentCompletion(match.winner_id, match.loser_id)
            )

        position = match.draw_position
        return ProgressionEffects(
            slot_fills=[
                SlotFill(
                    bracket=BracketKind.WINNERS,
                    round=match.round + 1,
                    match_number=draw.get_next_draw_position(position),
                    slot=draw.slot_for_position(position),
                    entrant_id=match.winner_id,
                )
            ]
        )


class DoubleEliminationProgressor:
    allows_draws = False

    def __init__(self) -> None:
        self._handlers: dict[
            BracketKind, Callable[[CompletedMatch, BracketShape], ProgressionEffects]
        ] = {
            BracketKind.WINNERS: self._advance_winners,
            BracketKind.LOSERS: self._advance_losers,
            BracketKind.FINALS: self._advance_finals,
        }

    def advance(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        return self._handlers[match.bracket](match, shape)

    def _advance_winners(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        if match.round == shape.winner_rounds:
            return ProgressionEffects(
                slot_fills=[
                    SlotFill(BracketKind.FINALS, shape.grand_finals_round, 1, Slot.A, match.winner_id),
                    self._into_losers(shape, (shape.loser_rounds, 1, Slot.B), match.loser_id),
                ]
            )

        position = match.draw_position
        return ProgressionEffects(
            slot_fills=[
                SlotFill(
                    BracketKind.WINNERS,
                    match.round + 1,
                    draw.get_next_draw_position(position),
                    draw.slot_for_position(position),
                    match.winner_id,
                ),
                self._into_losers(
                    shape,
                    draw.losers_drop_target(match.round, position, shape.winner_rounds),
                    match.loser_id,
                ),
            ]
        )

    def _advance_losers(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        if match.round == shape.loser_rounds:
            return ProgressionEffects(
                slot_fills=[
                    SlotFill(BracketKind.FINALS, shape.grand_finals_round, 1, Slot.B, match.winner_id)
                ]
            )

        target = draw.losers_advance_target(match.round, match.draw_position)
        return ProgressionEffects(slot_fills=[self._into_losers(shape, target, match.winner_id)])

    def _into_losers(
        self, shape: BracketShape, target: tuple[int, int, Slot], entrant_id: int
    ) -> SlotFill:
        """
        Fill for an entrant entering a losers match, skipping pass-throughs.

        A losers match that only one slot can ever receive is never played;
        the entrant carries on to where that match's winner would go.
        """
        feeds = shape.losers_feeds()
        round_no, position, slot = target
        while len(feeds.get((round_no, position), ())) == 1:
            if round_no == shape.loser_rounds:
                return SlotFill(BracketKind.FINALS, shape.grand_finals_round, 1, Slot.B, entrant_id)
            round_no, position, slot = draw.losers_advance_target(round_no, position)
        return SlotFill(BracketKind.LOSERS, round_no, position, slot, entrant_id)

    def _advance_finals(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        if match.match_number == 1 and match.winner_id != match.slot_a_id:
            # Bracket reset: the losers-bracket champion forced a second final
            reset_round = shape.grand_finals_round + 1
            return ProgressionEffects(
                slot_fills=[
                    SlotFill(BracketKind.FINALS, reset_round, 2, Slot.A, match.slot_a_id),
                    SlotFill(BracketKind.FINALS, reset_round, 2, Slot.B, match.slot_b_id),
                ]
            )
        return ProgressionEffects(
            completion=TournamentCompletion(match.winner_id, match.loser_id)
        )


class RoundRobinProgressor:
    allows_draws = True

    def advance(self, match: CompletedMatch, shape: BracketShape) -> ProgressionEffects:
        return ProgressionEffects(check_round_robin_completion=True)


_PROGRESSORS: dict[TournamentFormat, type] = {
    TournamentFormat.SINGLE_ELIMINATION: SingleEliminationProgressor,
    TournamentFormat.DOUBLE_ELIMINATION: DoubleEliminationProgressor,
    TournamentFormat.ROUND_ROBIN: RoundRobinProgressor,
}


def progressor_for(tournament_format: TournamentFormat | str) -> BracketProgressor:
    """Return the progressor for a format, raising UnsupportedFormat otherwise."""
    try:
        return _PROGRESSORS[TournamentFormat(tournament_format)]()
    except (ValueError, KeyError):
        raise UnsupportedFormat(str(tournament_format)) from None
