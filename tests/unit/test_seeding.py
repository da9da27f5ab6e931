"""Unit tests for seeding strategies."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytest

from bracketeer.seeding import (
    RandomSeeding,
    RankedSeeding,
    RegistrationOrderSeeding,
    get_seeding_strategy,
)

BASE = datetime(2026, 10, 1, 12, 0, 0)


@dataclass
class FakeEntry:
    id: int
    entrant_id: int
    joined_at: datetime
    rank: Optional[int] = None


@pytest.fixture
def entries():
    # Listed out of registration order on purpose
    return [
        FakeEntry(id=3, entrant_id=30, joined_at=BASE + timedelta(minutes=2), rank=1),
        FakeEntry(id=1, entrant_id=10, joined_at=BASE, rank=None),
        FakeEntry(id=4, entrant_id=40, joined_at=BASE + timedelta(minutes=3), rank=2),
        FakeEntry(id=2, entrant_id=20, joined_at=BASE + timedelta(minutes=1), rank=None),
    ]


def test_registration_order_gives_earliest_seed_one(entries):
    seeded = RegistrationOrderSeeding().seed(entries)
    assert [e.entrant_id for e in seeded] == [10, 20, 30, 40]
    assert [e.seed for e in seeded] == [1, 2, 3, 4]


def test_registration_order_breaks_same_timestamp_by_entry_id():
    same = [
        FakeEntry(id=9, entrant_id=90, joined_at=BASE),
        FakeEntry(id=5, entrant_id=50, joined_at=BASE),
    ]
    assert [e.entrant_id for e in RegistrationOrderSeeding().seed(same)] == [50, 90]


def test_ranked_puts_unranked_last_in_registration_order(entries):
    seeded = RankedSeeding().seed(entries)
    assert [e.entrant_id for e in seeded] == [30, 40, 10, 20]


def test_random_seeding_is_reproducible_with_rng_seed(entries):
    first = RandomSeeding(rng_seed=7).seed(entries)
    second = RandomSeeding(rng_seed=7).seed(entries)
    assert first == second
    assert sorted(e.entrant_id for e in first) == [10, 20, 30, 40]
    assert [e.seed for e in first] == [1, 2, 3, 4]


def test_get_strategy_by_name():
    assert isinstance(get_seeding_strategy("registration"), RegistrationOrderSeeding)
    assert isinstance(get_seeding_strategy("Ranked"), RankedSeeding)
    assert get_seeding_strategy("random").name == "random"


def test_unknown_strategy_raises():
    with pytest.raises(KeyError):
        get_seeding_strategy("elo")
