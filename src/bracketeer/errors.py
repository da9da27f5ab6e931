"""Error hierarchy for bracket generation and progression.

All engine errors derive from :class:`BracketError` so request handlers can
catch one type and map it to a user-facing response. None of them are
retried internally.
"""


class BracketError(Exception):
    pass


class AlreadyGenerated(BracketError):
    """Bracket generation was requested for a tournament that already has matches."""

    def __init__(self, tournament_id: int):
        super().__init__(f"Bracket already generated for tournament {tournament_id}")
        self.tournament_id = tournament_id


class InsufficientEntrants(BracketError):
    def __init__(self, count: int):
        super().__init__(f"At least 2 entrants are required, got {count}")
        self.count = count


class UnsupportedFormat(BracketError):
    def __init__(self, tournament_format: str):
        super().__init__(f"Unsupported tournament format: {tournament_format}")
        self.tournament_format = tournament_format


class AmbiguousResult(BracketError):
    """A tie was reported for a match that must produce a winner."""

    def __init__(self, match_id: int | None, score: int):
        super().__init__(f"Match {match_id} ended {score}-{score}; elimination matches need a winner")
        self.match_id = match_id


class MatchNotReady(BracketError):
    def __init__(self, match_id: int | None, reason: str):
        super().__init__(f"Match {match_id} cannot accept this operation: {reason}")
        self.match_id = match_id
        self.reason = reason


class DownstreamMatchMissing(BracketError):
    """Progression could not find the match a result must feed into."""

    def __init__(self, tournament_id: int, bracket: str, round_no: int, match_number: int):
        super().__init__(
            f"Tournament {tournament_id}: no {bracket} match at round {round_no} "
            f"#{match_number}"
        )
        self.tournament_id = tournament_id
        self.bracket = bracket
        self.round_no = round_no
        self.match_number = match_number


class SlotConflict(BracketError):
    """Two different entrants were routed into the same slot."""

    def __init__(self, match_id: int, slot: str, occupant: int, incoming: int):
        super().__init__(
            f"Match {match_id} slot {slot} already holds entrant {occupant}; "
            f"cannot place entrant {incoming}"
        )
        self.match_id = match_id
        self.slot = slot


class TournamentNotFound(BracketError):
    def __init__(self, tournament_id: int):
        super().__init__(f"Tournament {tournament_id} not found")
        self.tournament_id = tournament_id


class MatchNotFound(BracketError):
    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} not found")
        self.match_id = match_id


class InvalidTournamentState(BracketError):
    def __init__(self, tournament_id: int, status: str, expected: str):
        super().__init__(
            f"Tournament {tournament_id} is '{status}', expected '{expected}'"
        )
        self.tournament_id = tournament_id
        self.status = status


class LedgerError(Exception):
    pass


class InsufficientFunds(LedgerError):
    def __init__(self, user_id: int, balance, amount):
        super().__init__(f"User {user_id} balance {balance} is below {amount}")
        self.user_id = user_id
