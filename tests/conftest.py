"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

from bracketeer.db.models import Base, Tournament, TournamentEntry
from bracketeer.statuses import TournamentStatus

START = datetime(2026, 11, 7, 18, 0, 0)


@pytest.fixture(scope="session")
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory for fast tests that don't need
    PostgreSQL-specific features. pysqlite's own transaction handling is
    switched off so SAVEPOINTs (used by the notification outbox) work.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="session")
def tables(test_engine):
    """
    Create all tables for testing.

    This fixture runs once per test session.
    """
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def db_session(test_engine, tables):
    """
    Create a database session for a test.

    Each test gets its own session with automatic rollback,
    ensuring tests don't affect each other.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    session = Session(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def make_tournament(db_session):
    """
    Factory for a tournament with ``entrants`` active registrations.

    Entrant ids are 101, 102, ... in registration order, so entrant 100+k
    is seed k under registration seeding.
    """

    def _make(
        tournament_format: str = "single_elimination",
        entrants: int = 4,
        prize_pool: str = "0.00",
        status: TournamentStatus = TournamentStatus.REGISTRATION_CLOSED,
        ranks: dict[int, int] | None = None,
    ) -> Tournament:
        tournament = Tournament(
            name=f"Test Cup ({tournament_format}, {entrants})",
            format=tournament_format,
            max_players=max(entrants, 2),
            start_date=START,
            status=status.value,
            prize_pool=Decimal(prize_pool),
        )
        db_session.add(tournament)
        db_session.flush()

        ranks = ranks or {}
        for i in range(entrants):
            entrant_id = 101 + i
            db_session.add(
                TournamentEntry(
                    tournament_id=tournament.id,
                    entrant_id=entrant_id,
                    joined_at=START - timedelta(days=10) + timedelta(minutes=i),
                    rank=ranks.get(entrant_id),
                )
            )
        db_session.flush()
        return tournament

    return _make
