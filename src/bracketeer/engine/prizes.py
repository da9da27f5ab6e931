"""Prize pool split.

All arithmetic is done in :class:`~decimal.Decimal`. Runner-up and third
place shares are rounded down to the currency quantum and the winner takes
the remainder, so the three shares always add up to the pool exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from bracketeer.config import settings

PLACE_FIRST = "first"
PLACE_SECOND = "second"
PLACE_THIRD = "third"


@dataclass(frozen=True)
class PrizeShares:
    winner: Decimal
    runner_up: Decimal
    third: Decimal

    @property
    def total(self) -> Decimal:
        return self.winner + self.runner_up + self.third


@dataclass(frozen=True)
class Payout:
    entrant_id: int
    place: str
    amount: Decimal


def split_prize_pool(
    prize_pool: Decimal,
    runner_up_share: Optional[Decimal] = None,
    third_share: Optional[Decimal] = None,
    quantum: Optional[Decimal] = None,
) -> PrizeShares:
    """
    Split a pool into winner / runner-up / third shares.

    Examples:
        >>> split_prize_pool(Decimal("100.00"))
        PrizeShares(winner=Decimal('70.00'), runner_up=Decimal('20.00'), third=Decimal('10.00'))
        >>> split_prize_pool(Decimal("0.05")).total
        Decimal('0.05')
    """
    if prize_pool < 0:
        raise ValueError(f"Prize pool cannot be negative: {prize_pool}")

    runner_up_share = settings.prize_share_runner_up if runner_up_share is None else runner_up_share
    third_share = settings.prize_share_third if third_share is None else third_share
    quantum = settings.currency_quantum if quantum is None else quantum

    pool = Decimal(prize_pool).quantize(quantum, rounding=ROUND_DOWN)
    runner_up = (pool * runner_up_share).quantize(quantum, rounding=ROUND_DOWN)
    third = (pool * third_share).quantize(quantum, rounding=ROUND_DOWN)
    return PrizeShares(winner=pool - runner_up - third, runner_up=runner_up, third=third)


def plan_payouts(
    prize_pool: Decimal,
    winner_id: int,
    runner_up_id: Optional[int] = None,
    third_place_id: Optional[int] = None,
) -> list[Payout]:
    """
    Payouts for the placed entrants. Places without an entrant are skipped
    and their share stays in the pool. Zero amounts are not paid.
    """
    shares = split_prize_pool(prize_pool)
    candidates = [
        (winner_id, PLACE_FIRST, shares.winner),
        (runner_up_id, PLACE_SECOND, shares.runner_up),
        (third_place_id, PLACE_THIRD, shares.third),
    ]
    return [
        Payout(entrant_id=entrant_id, place=place, amount=amount)
        for entrant_id, place, amount in candidates
        if entrant_id is not None and amount > 0
    ]
