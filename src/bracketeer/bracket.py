"""
Bracket positional math.

Provides the closed-form arithmetic behind every bracket format. Draw
positions are 1-indexed within each round and follow standard
single-elimination progression:

    Round N, position p  →  Round N+1, position ceil(p/2)

So positions 1 and 2 feed into position 1 of the next round, positions 3
and 4 feed into position 2, etc. Odd positions fill slot A of the target
match and even positions fill slot B.

These functions are used by:
- The bracket builder (round sizes, first-round pairings, byes)
- The progression resolver (routing winners and losers)
- The bracket view (round names)
"""

import math
from typing import Iterable, Optional, Sequence, TypeVar

from bracketeer.statuses import Slot

T = TypeVar("T")


def winners_round_count(entrant_count: int) -> int:
    """
    Number of rounds in a single-elimination draw: ceil(log2(N)).

    Examples:
        >>> winners_round_count(2)
        1
        >>> winners_round_count(3)
        2
        >>> winners_round_count(8)
        3
        >>> winners_round_count(9)
        4
    """
    if entrant_count < 2:
        return 0
    return (entrant_count - 1).bit_length()


def draw_size(entrant_count: int) -> int:
    """
    Round the entrant count up to the next power of two.

    Examples:
        >>> draw_size(5)
        8
        >>> draw_size(8)
        8
    """
    return 2 ** winners_round_count(entrant_count)


def matches_in_round(total_rounds: int, round_no: int) -> int:
    """
    Number of match positions in a winners-bracket round: 2^(R - round).

    Examples:
        >>> matches_in_round(3, 1)
        4
        >>> matches_in_round(3, 3)
        1
    """
    return 2 ** (total_rounds - round_no)


def first_round_pairings(entrant_count: int) -> list[tuple[int, int, Optional[int]]]:
    """
    Pair seed indexes for round 1 by crossing high and low seeds.

    Position p pairs seed index p-1 with index (P - p), where P is the draw
    size. A partner index outside the entrant list is a bye and is returned
    as None.

    Returns:
        List of (position, index_a, index_b or None), ordered by position

    Examples:
        >>> first_round_pairings(4)
        [(1, 0, 3), (2, 1, 2)]
        >>> first_round_pairings(3)
        [(1, 0, None), (2, 1, 2)]
    """
    size = draw_size(entrant_count)
    pairings = []
    for position in range(1, size // 2 + 1):
        index_a = position - 1
        index_b = size - position
        pairings.append((position, index_a, index_b if index_b < entrant_count else None))
    return pairings


def get_next_draw_position(position: int) -> int:
    """
    Compute the draw position in the next round.

    Examples:
        >>> get_next_draw_position(1)
        1
        >>> get_next_draw_position(2)
        1
        >>> get_next_draw_position(3)
        2
    """
    return math.ceil(position / 2)


def slot_for_position(position: int) -> Slot:
    """
    Slot filled in the next match by the winner of ``position``.

    Examples:
        >>> slot_for_position(1).value
        'a'
        >>> slot_for_position(4).value
        'b'
    """
    return Slot.B if position % 2 == 0 else Slot.A


# =============================================================================
# Double elimination
# =============================================================================

def losers_round_count(winner_rounds: int) -> int:
    """
    Rounds in the losers bracket: 2R - 1.

    Examples:
        >>> losers_round_count(3)
        5
        >>> losers_round_count(1)
        1
    """
    return 2 * winner_rounds - 1


def losers_matches_in_round(round_no: int, first_round_matches: int) -> int:
    """
    Number of matches in a losers-bracket round.

    Round 1 takes half the winners first-round matches. For round r >= 2 the
    count is m1 / 2^floor((r-1)/2) when r is even and m1 / 2^ceil((r-1)/2)
    when r is odd. Fractional counts round up, so small draws still get one
    match per round.

    Args:
        round_no: Losers round (1-based)
        first_round_matches: Match positions in winners round 1 (m1)

    Examples:
        >>> [losers_matches_in_round(r, 4) for r in range(1, 6)]
        [2, 4, 2, 2, 1]
        >>> [losers_matches_in_round(r, 2) for r in range(1, 4)]
        [1, 2, 1]
        >>> losers_matches_in_round(1, 1)
        1
    """
    if round_no == 1:
        return math.ceil(first_round_matches / 2)
    if round_no % 2 == 0:
        exponent = (round_no - 1) // 2
    else:
        exponent = math.ceil((round_no - 1) / 2)
    return math.ceil(first_round_matches / 2 ** exponent)


def losers_drop_target(
    winners_round: int, position: int, winner_rounds: int
) -> tuple[int, int, Slot]:
    """
    Where the loser of a winners-bracket match enters the losers bracket.

    Winners round 1 losers pair up in losers round 1 (slot by parity). The
    losers of every later winners round r drop into losers round 2r-1 at
    the same position, always in slot B; slot A of those matches is fed by
    the losers bracket itself.

    Returns:
        (losers_round, position, slot)

    Examples:
        >>> target = losers_drop_target(1, 4, 3)
        >>> (target[0], target[1], target[2].value)
        (1, 2, 'b')
        >>> target = losers_drop_target(2, 2, 3)
        >>> (target[0], target[1], target[2].value)
        (3, 2, 'b')
        >>> target = losers_drop_target(1, 1, 1)
        >>> (target[0], target[1], target[2].value)
        (1, 1, 'b')
    """
    if winners_round == 1 and winner_rounds > 1:
        return 1, get_next_draw_position(position), slot_for_position(position)
    return winners_round * 2 - 1, position, Slot.B


def losers_advance_target(round_no: int, position: int) -> tuple[int, int, Slot]:
    """
    Where the winner of a losers-bracket match goes next.

    Even target rounds merge pairs of positions and pick the slot by parity.
    Odd target rounds keep the position and always use slot A, since slot B
    belongs to the winners-bracket drop.

    Returns:
        (target_round, target_position, slot)

    Examples:
        >>> target = losers_advance_target(1, 2)
        >>> (target[0], target[1], target[2].value)
        (2, 1, 'b')
        >>> target = losers_advance_target(2, 3)
        >>> (target[0], target[1], target[2].value)
        (3, 3, 'a')
    """
    target_round = round_no + 1
    if target_round % 2 == 0:
        return target_round, get_next_draw_position(position), slot_for_position(position)
    return target_round, position, Slot.A


def losers_feeds(
    winner_rounds: int, first_round_positions: Iterable[int]
) -> dict[tuple[int, int], frozenset[Slot]]:
    """
    Slots of each losers-bracket match that some earlier match can fill.

    ``first_round_positions`` are the draw positions of the winners round 1
    matches that exist (byes have none, so they drop nobody). A losers
    match with a single fed slot is a pass-through: its only entrant moves
    on to the match's own target. Matches missing from the result are
    never reached.

    Examples:
        >>> feeds = losers_feeds(2, [1, 2])
        >>> sorted((key, "".join(sorted(s.value for s in slots))) for key, slots in feeds.items())
        [((1, 1), 'ab'), ((2, 1), 'a'), ((3, 1), 'ab')]
    """
    first_round_matches = matches_in_round(winner_rounds, 1)
    fed: dict[tuple[int, int], set[Slot]] = {}

    def feed(target: tuple[int, int, Slot]) -> None:
        round_no, position, slot = target
        fed.setdefault((round_no, position), set()).add(slot)

    for position in first_round_positions:
        feed(losers_drop_target(1, position, winner_rounds))
    for winners_round in range(2, winner_rounds + 1):
        for position in range(1, matches_in_round(winner_rounds, winners_round) + 1):
            feed(losers_drop_target(winners_round, position, winner_rounds))

    # Drops into round 2r-1 are all known before that round forwards anyone
    for round_no in range(1, losers_round_count(winner_rounds)):
        for position in range(1, losers_matches_in_round(round_no, first_round_matches) + 1):
            if (round_no, position) in fed:
                feed(losers_advance_target(round_no, position))

    return {key: frozenset(slots) for key, slots in fed.items()}


# =============================================================================
# Round robin
# =============================================================================

def circle_rounds(entrants: Sequence[Optional[T]]) -> list[list[tuple[Optional[T], Optional[T]]]]:
    """
    Generate round-robin pairings with the circle method.

    The first entrant stays fixed and the rest rotate by one position each
    round. An odd list is padded with a None bye; pairings that involve the
    bye are still returned so callers can skip them.

    Examples:
        >>> circle_rounds(["a", "b", "c", "d"])
        [[('a', 'd'), ('b', 'c')], [('a', 'c'), ('d', 'b')], [('a', 'b'), ('c', 'd')]]
    """
    players = list(entrants)
    if len(players) % 2 != 0:
        players.append(None)

    count = len(players)
    rounds = []
    for _ in range(count - 1):
        rounds.append([(players[p], players[count - 1 - p]) for p in range(count // 2)])
        players = [players[0], players[-1]] + players[1:-1]
    return rounds


# =============================================================================
# Display
# =============================================================================

def round_name(round_no: int, total_rounds: int) -> str:
    """
    Human-readable name for an elimination round.

    Examples:
        >>> round_name(3, 3)
        'Finals'
        >>> round_name(2, 3)
        'Semi-Finals'
        >>> round_name(1, 4)
        'Round 1'
    """
    if round_no == total_rounds:
        return "Finals"
    if round_no == total_rounds - 1:
        return "Semi-Finals"
    if round_no == total_rounds - 2:
        return "Quarter-Finals"
    return f"Round {round_no}"
