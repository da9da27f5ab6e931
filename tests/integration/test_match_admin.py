"""Integration tests for manual match operations."""

from datetime import datetime
from decimal import Decimal

import pytest

from bracketeer.db.models import Notification
from bracketeer.db.repository import MatchRepository
from bracketeer.errors import MatchNotReady, SlotConflict
from bracketeer.ledger import WalletLedger
from bracketeer.services.bracket_generation import generate_bracket
from bracketeer.services.match_admin import (
    assign_slot,
    cancel_match,
    reschedule_match,
    start_match,
)
from bracketeer.services.results import report_result
from bracketeer.statuses import MatchStatus, TournamentStatus


@pytest.fixture
def four_player_bracket(db_session, make_tournament):
    tournament = make_tournament("single_elimination", entrants=4)
    generate_bracket(db_session, tournament.id)
    repo = MatchRepository(db_session)
    return {
        "opener": repo.find_match(tournament.id, "winners", 1, 1),
        "second": repo.find_match(tournament.id, "winners", 1, 2),
        "final": repo.find_match(tournament.id, "winners", 2, 1),
    }


class TestAssignSlot:
    def test_filling_both_slots_schedules_match(self, db_session, four_player_bracket):
        final = four_player_bracket["final"]

        assign_slot(db_session, final.id, "a", 101)
        assert final.status == MatchStatus.PENDING.value

        assign_slot(db_session, final.id, "b", 103)
        assert final.status == MatchStatus.SCHEDULED.value
        kinds = [n.kind for n in db_session.query(Notification).filter_by(user_id=103).all()]
        assert "match_scheduled" in kinds

    def test_occupied_slot_conflicts(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]
        with pytest.raises(SlotConflict):
            assign_slot(db_session, opener.id, "a", 999)
        assert opener.slot_a_id == 101

    def test_replace_overrides_occupant(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]
        assign_slot(db_session, opener.id, "a", 999, replace=True)
        assert opener.slot_a_id == 999

    def test_same_entrant_is_a_noop(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]
        assign_slot(db_session, opener.id, "b", 104)
        assert opener.slot_b_id == 104
        assert opener.status == MatchStatus.SCHEDULED.value

    def test_completed_match_rejected(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]
        report_result(db_session, opener.id, 1, 0)
        with pytest.raises(MatchNotReady):
            assign_slot(db_session, opener.id, "a", 999, replace=True)


class TestMatchLifecycle:
    def test_start_then_report(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]

        start_match(db_session, opener.id)
        assert opener.status == MatchStatus.IN_PROGRESS.value

        report_result(db_session, opener.id, 0, 1)
        assert opener.status == MatchStatus.COMPLETED.value
        assert opener.winner_id == 104

    def test_pending_match_cannot_start(self, db_session, four_player_bracket):
        with pytest.raises(MatchNotReady):
            start_match(db_session, four_player_bracket["final"].id)

    def test_cancel_scheduled(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]
        cancel_match(db_session, opener.id)
        assert opener.status == MatchStatus.CANCELLED.value

    def test_placeholder_cannot_be_cancelled(self, db_session, four_player_bracket):
        final = four_player_bracket["final"]
        with pytest.raises(MatchNotReady):
            cancel_match(db_session, final.id)
        assert (final.slot_a_id, final.slot_b_id, final.status) == (None, None, "pending")

    def test_completed_match_cannot_be_cancelled(self, db_session, four_player_bracket):
        opener = four_player_bracket["opener"]
        report_result(db_session, opener.id, 3, 0)
        with pytest.raises(MatchNotReady):
            cancel_match(db_session, opener.id)
        assert opener.status == MatchStatus.COMPLETED.value

    def test_reschedule_notifies_both_entrants(self, db_session, four_player_bracket):
        second = four_player_bracket["second"]
        new_time = datetime(2026, 11, 9, 20, 30, 0)

        reschedule_match(db_session, second.id, new_time)

        assert second.scheduled_at == new_time
        rows = db_session.query(Notification).filter_by(kind="match_rescheduled").all()
        assert sorted(n.user_id for n in rows) == [102, 103]
        assert rows[0].payload["scheduled_at"] == new_time.isoformat()


class TestRoundRobinCancellation:
    """Three entrants: 102 v 103, 101 v 103, 101 v 102 (one per round)."""

    def _win(self, db_session, match, winner_id):
        scores = (2, 0) if match.slot_a_id == winner_id else (0, 2)
        report_result(db_session, match.id, *scores)

    def test_cancelling_last_open_match_completes_tournament(self, db_session, make_tournament):
        tournament = make_tournament("round_robin", entrants=3, prize_pool="100.00")
        generate_bracket(db_session, tournament.id)
        repo = MatchRepository(db_session)
        first, second, third = (repo.find_match(tournament.id, "winners", r, 1) for r in (1, 2, 3))

        self._win(db_session, first, 102)
        self._win(db_session, second, 101)
        assert tournament.status == TournamentStatus.IN_PROGRESS.value

        cancel_match(db_session, third.id)

        # 101 and 102 both have one win; the better seed takes first place
        assert tournament.status == TournamentStatus.COMPLETED.value
        assert tournament.winner_id == 101
        assert tournament.prizes_distributed is True
        ledger = WalletLedger(db_session)
        assert ledger.balance(101) == Decimal("70.00")
        assert ledger.balance(102) == Decimal("20.00")

    def test_cancelling_with_matches_left_keeps_tournament_open(self, db_session, make_tournament):
        tournament = make_tournament("round_robin", entrants=3)
        generate_bracket(db_session, tournament.id)

        opener = MatchRepository(db_session).find_match(tournament.id, "winners", 1, 1)

        cancel_match(db_session, opener.id)

        assert tournament.status == TournamentStatus.IN_PROGRESS.value
        assert tournament.winner_id is None
