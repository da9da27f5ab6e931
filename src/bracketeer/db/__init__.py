"""
Database module for Bracketeer.

Provides SQLAlchemy ORM models, session management and the repositories
the services use.

Usage:
    from bracketeer.db import get_session, Match

    with get_session() as session:
        matches = MatchRepository(session).list_matches(tournament_id)
"""

from bracketeer.db.models import (
    Base,
    Tournament,
    TournamentEntry,
    Match,
    Wallet,
    WalletTransaction,
    Notification,
)
from bracketeer.db.repository import MatchRepository, TournamentRepository
from bracketeer.db.session import get_session, get_engine, SessionLocal

__all__ = [
    # Base
    "Base",
    # Models
    "Tournament",
    "TournamentEntry",
    "Match",
    "Wallet",
    "WalletTransaction",
    "Notification",
    # Repositories
    "MatchRepository",
    "TournamentRepository",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
]
