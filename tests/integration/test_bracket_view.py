"""Integration tests for bracket overview and progress statistics."""

from bracketeer.db.repository import MatchRepository
from bracketeer.services.bracket_generation import generate_bracket
from bracketeer.services.bracket_view import (
    bracket_overview,
    list_bracket_matches,
    tournament_progress,
)
from bracketeer.services.results import report_result


def test_single_elimination_round_names(db_session, make_tournament):
    tournament = make_tournament("single_elimination", entrants=8)
    generate_bracket(db_session, tournament.id)

    overview = bracket_overview(db_session, tournament.id)

    assert list(overview["brackets"]) == ["winners"]
    names = [r["name"] for r in overview["brackets"]["winners"]]
    assert names == ["Quarter-Finals", "Semi-Finals", "Finals"]
    assert [len(r["matches"]) for r in overview["brackets"]["winners"]] == [4, 2, 1]
    assert "standings" not in overview


def test_double_elimination_round_names(db_session, make_tournament):
    tournament = make_tournament("double_elimination", entrants=4)
    generate_bracket(db_session, tournament.id)

    brackets = bracket_overview(db_session, tournament.id)["brackets"]

    assert [r["name"] for r in brackets["winners"]] == ["Winners Round 1", "Winners Round 2"]
    assert [r["name"] for r in brackets["losers"]] == [
        "Losers Round 1",
        "Losers Round 2",
        "Losers Round 3",
    ]
    assert [r["name"] for r in brackets["finals"]] == ["Grand Finals", "Grand Finals (Reset)"]


def test_round_robin_overview_includes_standings(db_session, make_tournament):
    tournament = make_tournament("round_robin", entrants=4)
    generate_bracket(db_session, tournament.id)

    overview = bracket_overview(db_session, tournament.id)

    assert [r["name"] for r in overview["brackets"]["winners"]] == ["Round 1", "Round 2", "Round 3"]
    assert [row["entrant_id"] for row in overview["standings"]] == [101, 102, 103, 104]


def test_progress_tracks_completion_and_current_round(db_session, make_tournament):
    tournament = make_tournament("single_elimination", entrants=4)
    generate_bracket(db_session, tournament.id)
    repo = MatchRepository(db_session)

    progress = tournament_progress(db_session, tournament.id)
    assert progress["total_matches"] == 3
    assert progress["completion_percentage"] == 0.0
    assert progress["current_round"] == {"winners": 1}

    report_result(db_session, repo.find_match(tournament.id, "winners", 1, 1).id, 2, 0)
    progress = tournament_progress(db_session, tournament.id)
    assert progress["by_status"]["completed"] == 1
    assert progress["completion_percentage"] == 33.33

    report_result(db_session, repo.find_match(tournament.id, "winners", 1, 2).id, 2, 0)
    assert tournament_progress(db_session, tournament.id)["current_round"] == {"winners": 2}

    report_result(db_session, repo.find_match(tournament.id, "winners", 2, 1).id, 2, 0)
    progress = tournament_progress(db_session, tournament.id)
    assert progress["completion_percentage"] == 100.0
    assert progress["current_round"] == {"winners": 0}
    assert progress["by_bracket"]["winners"] == {"total": 3, "completed": 3}


def test_list_matches_by_status(db_session, make_tournament):
    tournament = make_tournament("single_elimination", entrants=4)
    generate_bracket(db_session, tournament.id)

    pending = list_bracket_matches(db_session, tournament.id, ["pending", "bogus"])
    assert [(m.round, m.match_number) for m in pending] == [(2, 1)]

    everything = list_bracket_matches(db_session, tournament.id)
    assert len(everything) == 3
