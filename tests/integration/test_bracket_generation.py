"""
Integration tests for bracket generation against SQLite.

Tests:
- A generated bracket is persisted with correct slots and statuses
- Generation happens exactly once per tournament
- State and entrant-count guards leave the tournament untouched
"""

from datetime import timedelta

import pytest

from bracketeer.db.models import Match, Notification, TournamentEntry
from bracketeer.db.repository import MatchRepository, TournamentRepository
from bracketeer.errors import (
    AlreadyGenerated,
    InsufficientEntrants,
    InvalidTournamentState,
    TournamentNotFound,
)
from bracketeer.locks import tournament_lock
from bracketeer.services.bracket_generation import generate_bracket
from bracketeer.statuses import EntryStatus, TournamentStatus


class TestGenerateBracket:
    """Happy paths."""

    def test_single_elimination_four_entrants(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=4)

        stats = generate_bracket(db_session, tournament.id)

        assert stats.matches_created == 3
        assert stats.matches_scheduled == 2
        assert stats.matches_pending == 1
        assert stats.byes == 0
        assert tournament.status == TournamentStatus.IN_PROGRESS.value

        matches = MatchRepository(db_session).list_matches(tournament.id)
        assert [(m.round, m.match_number, m.slot_a_id, m.slot_b_id, m.status) for m in matches] == [
            (1, 1, 101, 104, "scheduled"),
            (1, 2, 102, 103, "scheduled"),
            (2, 1, None, None, "pending"),
        ]
        assert matches[2].scheduled_at == tournament.start_date + timedelta(days=1)

    def test_three_entrants_bye_prefilled(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=3)

        stats = generate_bracket(db_session, tournament.id)

        assert stats.byes == 1
        repo = MatchRepository(db_session)
        opener = repo.find_match(tournament.id, "winners", 1, 1)
        final = repo.find_match(tournament.id, "winners", 2, 1)
        assert (opener.slot_a_id, opener.slot_b_id) == (102, 103)
        assert final.slot_a_id == 101
        assert final.status == "pending"

    def test_double_elimination_row_count(self, db_session, make_tournament):
        tournament = make_tournament("double_elimination", entrants=8)
        stats = generate_bracket(db_session, tournament.id)
        assert stats.matches_created == 20

    def test_round_robin_all_scheduled(self, db_session, make_tournament):
        tournament = make_tournament("round_robin", entrants=5)
        stats = generate_bracket(db_session, tournament.id)
        assert stats.matches_created == 10
        assert stats.matches_scheduled == 10

    def test_cancelled_entries_are_not_seeded(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=5)
        entry = (
            db_session.query(TournamentEntry)
            .filter_by(tournament_id=tournament.id, entrant_id=105)
            .one()
        )
        entry.status = EntryStatus.CANCELLED.value
        db_session.flush()

        stats = generate_bracket(db_session, tournament.id)

        assert stats.entrants == 4
        seeded = {
            entrant
            for m in MatchRepository(db_session).list_matches(tournament.id)
            for entrant in (m.slot_a_id, m.slot_b_id)
        }
        assert 105 not in seeded

    def test_ranked_seeding_by_name(self, db_session, make_tournament):
        tournament = make_tournament(
            "single_elimination", entrants=4, ranks={104: 1, 103: 2, 102: 3, 101: 4}
        )
        generate_bracket(db_session, tournament.id, seeding="ranked")

        opener = MatchRepository(db_session).find_match(tournament.id, "winners", 1, 1)
        assert (opener.slot_a_id, opener.slot_b_id) == (104, 101)

    def test_entrants_notified(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=4)
        stats = generate_bracket(db_session, tournament.id)

        rows = db_session.query(Notification).filter_by(kind="tournament_started").all()
        assert stats.notifications_queued == 4
        assert sorted(n.user_id for n in rows) == [101, 102, 103, 104]
        assert all(n.payload["tournament_id"] == tournament.id for n in rows)

    def test_summary_mentions_tournament(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=2)
        stats = generate_bracket(db_session, tournament.id)
        assert f"tournament {tournament.id}" in stats.summary()


class TestGenerationGuards:
    """Generation is exactly-once and validated."""

    def test_second_generation_raises_and_creates_nothing(self, db_session, make_tournament):
        tournament = make_tournament("double_elimination", entrants=6)
        first = generate_bracket(db_session, tournament.id)

        with pytest.raises(AlreadyGenerated):
            generate_bracket(db_session, tournament.id)

        assert MatchRepository(db_session).count_matches(tournament.id) == first.matches_created

    def test_claim_is_compare_and_set(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=4)
        repo = TournamentRepository(db_session)
        assert repo.claim_for_generation(tournament.id) is True
        assert repo.claim_for_generation(tournament.id) is False

    def test_registration_still_open(self, db_session, make_tournament):
        tournament = make_tournament(
            "single_elimination", entrants=4, status=TournamentStatus.REGISTRATION_OPEN
        )
        with pytest.raises(InvalidTournamentState):
            generate_bracket(db_session, tournament.id)
        assert db_session.query(Match).filter_by(tournament_id=tournament.id).count() == 0

    def test_single_entrant(self, db_session, make_tournament):
        tournament = make_tournament("single_elimination", entrants=1)
        with pytest.raises(InsufficientEntrants):
            generate_bracket(db_session, tournament.id)
        assert tournament.status == TournamentStatus.REGISTRATION_CLOSED.value

    def test_unknown_tournament(self, db_session, tables):
        with pytest.raises(TournamentNotFound):
            generate_bracket(db_session, 999_999)

    def test_advisory_lock_is_noop_on_sqlite(self, db_session, tables):
        assert tournament_lock(db_session, 1) is False
