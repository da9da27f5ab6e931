"""Unit tests for positional bracket math."""

import pytest

from bracketeer import bracket as draw
from bracketeer.statuses import Slot


class TestWinnersBracket:
    """Round counts, draw size and first-round pairings."""

    @pytest.mark.parametrize(
        "entrants,rounds",
        [(1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (16, 4), (17, 5)],
    )
    def test_round_count_is_ceil_log2(self, entrants, rounds):
        assert draw.winners_round_count(entrants) == rounds

    def test_draw_size_rounds_up_to_power_of_two(self):
        assert draw.draw_size(2) == 2
        assert draw.draw_size(6) == 8
        assert draw.draw_size(16) == 16

    def test_full_draw_crosses_high_and_low_seeds(self):
        assert draw.first_round_pairings(8) == [
            (1, 0, 7),
            (2, 1, 6),
            (3, 2, 5),
            (4, 3, 4),
        ]

    def test_top_two_seeds_meet_in_round_two(self):
        """Positions run in order, so seeds 1 and 2 share a round-2 match."""
        for entrants in (5, 8):
            positions = {index_a: p for p, index_a, _ in draw.first_round_pairings(entrants)}
            assert draw.get_next_draw_position(positions[0]) == 1
            assert draw.get_next_draw_position(positions[1]) == 1

    def test_missing_partners_are_byes(self):
        """Top seeds receive the byes when the field is not a power of two."""
        pairings = draw.first_round_pairings(5)
        byes = [position for position, _, partner in pairings if partner is None]
        assert byes == [1, 2, 3]
        assert pairings[3] == (4, 3, 4)

    def test_sibling_positions_meet_in_the_next_round(self):
        for position in range(1, 9):
            pair = (2 * position - 1, 2 * position)
            assert [draw.get_next_draw_position(p) for p in pair] == [position, position]

    def test_slot_parity(self):
        assert draw.slot_for_position(1) is Slot.A
        assert draw.slot_for_position(2) is Slot.B
        assert draw.slot_for_position(7) is Slot.A


class TestLosersBracket:
    """Losers-bracket sizing and routing."""

    def test_round_count(self):
        assert draw.losers_round_count(2) == 3
        assert draw.losers_round_count(4) == 7

    def test_match_counts_for_sixteen_entrants(self):
        # m1 = 8 winners first-round matches
        counts = [draw.losers_matches_in_round(r, 8) for r in range(1, 8)]
        assert counts == [4, 8, 4, 4, 2, 2, 1]

    def test_small_draws_never_get_empty_rounds(self):
        counts = [draw.losers_matches_in_round(r, 1) for r in range(1, 2)]
        assert counts == [1]

    def test_round_one_losers_pair_up_by_parity(self):
        assert draw.losers_drop_target(1, 3, 3) == (1, 2, Slot.A)
        assert draw.losers_drop_target(1, 4, 3) == (1, 2, Slot.B)

    def test_later_winners_losers_take_slot_b_of_odd_rounds(self):
        assert draw.losers_drop_target(2, 2, 3) == (3, 2, Slot.B)
        assert draw.losers_drop_target(3, 1, 3) == (5, 1, Slot.B)
        # A two-entrant draw drops its only loser straight into the losers final
        assert draw.losers_drop_target(1, 1, 1) == (1, 1, Slot.B)

    def test_advance_into_even_round_merges_positions(self):
        assert draw.losers_advance_target(1, 1) == (2, 1, Slot.A)
        assert draw.losers_advance_target(3, 2) == (4, 1, Slot.B)

    def test_advance_into_odd_round_keeps_position_in_slot_a(self):
        assert draw.losers_advance_target(2, 2) == (3, 2, Slot.A)
        assert draw.losers_advance_target(4, 1) == (5, 1, Slot.A)

    @pytest.mark.parametrize("winner_rounds", [1, 2, 3, 4, 5])
    def test_no_two_feeds_share_a_slot(self, winner_rounds):
        first_round_matches = draw.matches_in_round(winner_rounds, 1)
        feeds = draw.losers_feeds(winner_rounds, range(1, first_round_matches + 1))

        targets = [
            draw.losers_drop_target(1, p, winner_rounds) for p in range(1, first_round_matches + 1)
        ]
        for winners_round in range(2, winner_rounds + 1):
            for p in range(1, draw.matches_in_round(winner_rounds, winners_round) + 1):
                targets.append(draw.losers_drop_target(winners_round, p, winner_rounds))
        last_round = draw.losers_round_count(winner_rounds)
        targets += [draw.losers_advance_target(r, p) for r, p in feeds if r < last_round]

        assert len(targets) == len(set(targets))
        for round_no, position, _ in targets:
            assert position <= draw.losers_matches_in_round(round_no, first_round_matches)

    def test_feeds_for_eight_entrants(self):
        feeds = draw.losers_feeds(3, [1, 2, 3, 4])
        assert feeds == {
            (1, 1): {Slot.A, Slot.B},
            (1, 2): {Slot.A, Slot.B},
            (2, 1): {Slot.A, Slot.B},
            (3, 1): {Slot.A, Slot.B},
            (3, 2): {Slot.B},
            (4, 1): {Slot.A, Slot.B},
            (5, 1): {Slot.A, Slot.B},
        }

    def test_feeds_skip_bye_positions(self):
        # Five entrants: only position 4 plays in winners round 1
        feeds = draw.losers_feeds(3, [4])
        assert (1, 1) not in feeds
        assert feeds[(1, 2)] == {Slot.B}
        assert feeds[(2, 1)] == {Slot.B}
        assert feeds[(3, 1)] == {Slot.A, Slot.B}
        assert feeds[(5, 1)] == {Slot.A, Slot.B}


class TestCircleRounds:
    """Round-robin pairings."""

    def test_even_field_meets_everyone_once(self):
        rounds = draw.circle_rounds([1, 2, 3, 4, 5, 6])
        assert len(rounds) == 5
        pairs = [frozenset(p) for r in rounds for p in r]
        assert len(pairs) == 15
        assert len(set(pairs)) == 15

    def test_odd_field_is_padded_with_a_bye(self):
        rounds = draw.circle_rounds(["a", "b", "c"])
        assert len(rounds) == 3
        for pairings in rounds:
            assert sum(1 for a, b in pairings if a is None or b is None) == 1

    def test_each_entrant_plays_once_per_round(self):
        for pairings in draw.circle_rounds(list(range(8))):
            seen = [e for pair in pairings for e in pair]
            assert sorted(seen) == list(range(8))


class TestRoundNames:
    def test_named_rounds(self):
        assert draw.round_name(4, 4) == "Finals"
        assert draw.round_name(3, 4) == "Semi-Finals"
        assert draw.round_name(2, 4) == "Quarter-Finals"
        assert draw.round_name(1, 4) == "Round 1"
