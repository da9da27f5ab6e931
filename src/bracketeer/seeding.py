"""Seeding strategies that order registered entrants into bracket positions.

Every strategy returns a list of :class:`Entrant` where list index i holds
seed i+1, so the builder can apply "1 vs N, 2 vs N-1" pairing by index.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class Entrant:
    """An entrant (user or team id) with its seed rank, 1 = top seed."""

    entrant_id: int
    seed: int


class SeedableEntry(Protocol):
    """Shape of a registration row; ``TournamentEntry`` satisfies it."""

    id: int
    entrant_id: int
    joined_at: datetime
    rank: Optional[int]


def _registration_key(entry: SeedableEntry) -> tuple:
    return (entry.joined_at, entry.id)


def _as_entrants(ordered: Sequence[SeedableEntry]) -> list[Entrant]:
    return [Entrant(entrant_id=entry.entrant_id, seed=i + 1) for i, entry in enumerate(ordered)]


class SeedingStrategy(Protocol):
    name: str

    def seed(self, entries: Sequence[SeedableEntry]) -> list[Entrant]:
        ...


class RegistrationOrderSeeding:
    """Earliest registration gets seed 1."""

    name = "registration"

    def seed(self, entries: Sequence[SeedableEntry]) -> list[Entrant]:
        return _as_entrants(sorted(entries, key=_registration_key))


class RandomSeeding:
    """Shuffle entrants; pass ``rng_seed`` for a reproducible draw."""

    name = "random"

    def __init__(self, rng_seed: Optional[int] = None):
        self._rng = random.Random(rng_seed)

    def seed(self, entries: Sequence[SeedableEntry]) -> list[Entrant]:
        ordered = sorted(entries, key=_registration_key)
        self._rng.shuffle(ordered)
        return _as_entrants(ordered)


class RankedSeeding:
    """Ascending rank; unranked entrants go last in registration order."""

    name = "ranked"

    def seed(self, entries: Sequence[SeedableEntry]) -> list[Entrant]:
        ordered = sorted(
            entries,
            key=lambda entry: (
                entry.rank is None,
                entry.rank if entry.rank is not None else 0,
                entry.joined_at,
                entry.id,
            ),
        )
        return _as_entrants(ordered)


_STRATEGIES = {
    RegistrationOrderSeeding.name: RegistrationOrderSeeding,
    RandomSeeding.name: RandomSeeding,
    RankedSeeding.name: RankedSeeding,
}


def get_seeding_strategy(name: str) -> SeedingStrategy:
    """Instantiate a strategy by name, raising KeyError for unknown names."""
    try:
        return _STRATEGIES[name.lower()]()
    except KeyError as exc:
        raise KeyError(f"Unknown seeding strategy: {name}") from exc
