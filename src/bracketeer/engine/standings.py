"""Round-robin standings.

Standings are recomputed from scratch by folding over completed matches:
a win is worth 3 points and a draw 1 point to each side. Ordering is points,
then wins, then seed (registration order), then entrant id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from bracketeer.statuses import MatchStatus

WIN_POINTS = 3
DRAW_POINTS = 1


@dataclass
class StandingRow:
    entrant_id: int
    seed: Optional[int] = None
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0

    def to_dict(self) -> dict:
        return {
            "entrant_id": self.entrant_id,
            "seed": self.seed,
            "matches_played": self.matches_played,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "points": self.points,
        }


def _sort_key(row: StandingRow) -> tuple:
    seed = row.seed if row.seed is not None else float("inf")
    return (-row.points, -row.wins, seed, row.entrant_id)


def compute_standings(
    matches: Iterable,
    seeds: Optional[Mapping[int, int]] = None,
) -> list[StandingRow]:
    """
    Fold completed matches into a sorted standings table.

    Args:
        matches: Match-like objects (status, slot_a_id, slot_b_id, winner_id)
        seeds: Optional entrant_id -> seed map. Every seeded entrant gets a
               row even before playing, and seeds break ties.

    Returns:
        StandingRows, leader first
    """
    seeds = seeds or {}
    table: dict[int, StandingRow] = {
        entrant_id: StandingRow(entrant_id=entrant_id, seed=seed)
        for entrant_id, seed in seeds.items()
    }

    def row_for(entrant_id: int) -> StandingRow:
        if entrant_id not in table:
            table[entrant_id] = StandingRow(entrant_id=entrant_id, seed=seeds.get(entrant_id))
        return table[entrant_id]

    for match in matches:
        if MatchStatus(match.status) != MatchStatus.COMPLETED:
            continue
        if match.slot_a_id is None or match.slot_b_id is None:
            continue

        row_a = row_for(match.slot_a_id)
        row_b = row_for(match.slot_b_id)
        row_a.matches_played += 1
        row_b.matches_played += 1

        if match.winner_id == match.slot_a_id:
            winner, loser = row_a, row_b
        elif match.winner_id == match.slot_b_id:
            winner, loser = row_b, row_a
        else:
            row_a.draws += 1
            row_b.draws += 1
            row_a.points += DRAW_POINTS
            row_b.points += DRAW_POINTS
            continue

        winner.wins += 1
        winner.points += WIN_POINTS
        loser.losses += 1

    return sorted(table.values(), key=_sort_key)
