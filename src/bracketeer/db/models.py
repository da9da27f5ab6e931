"""
SQLAlchemy ORM models for Bracketeer.

The bracket engine owns the matches table. Tournaments, registrations,
wallets and notifications belong to the surrounding platform; they are
modelled here with the columns the engine reads and writes.

Key design decisions:
- Matches are keyed by (tournament_id, bracket, round, match_number), unique
- Placeholder matches exist from generation onwards; slots fill in later
- Entrants are opaque ids (user or team), never names
- Money is Numeric and handled as Decimal end to end
- Notifications are an outbox table; delivery happens elsewhere

Tables:
- tournaments: Tournament state and prize pool
- tournament_entries: Registrations, seeding input
- matches: Every bracket match, placeholder to completed
- wallets: One balance per user
- wallet_transactions: Ledger of wallet movements
- notifications: Outbox of user notifications
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from bracketeer.statuses import (
    EntryStatus,
    MatchStatus,
    TournamentStatus,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Tournament Models
# =============================================================================

class Tournament(Base):
    """
    A tournament as seen by the bracket engine.

    Status lifecycle:
    - 'draft' -> 'registration_open' -> 'registration_closed'
    - 'registration_closed' -> 'in_progress' (bracket generation, exactly once)
    - 'in_progress' -> 'completed' (final result reported)
    - any -> 'cancelled' (platform decision)
    """
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # 'single_elimination', 'double_elimination', 'round_robin'
    format: Mapped[str] = mapped_column(String(30), nullable=False)
    max_players: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    status: Mapped[str] = mapped_column(
        String(30), default=TournamentStatus.DRAFT.value, nullable=False
    )
    winner_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    prize_pool: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    # Set once payouts are written; a second completion never pays again
    prizes_distributed: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    entries: Mapped[list["TournamentEntry"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )
    matches: Mapped[list["Match"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_tournaments_status", "status"),
        CheckConstraint("prize_pool >= 0", name="ck_tournaments_prize_pool_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}', status='{self.status}')>"


class TournamentEntry(Base):
    """
    A registration of one entrant (user or team) in a tournament.

    Only 'active' entries are seeded. ``rank`` is an optional external rating
    position used by ranked seeding (1 = strongest).
    """
    __tablename__ = "tournament_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    entrant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=EntryStatus.ACTIVE.value, nullable=False
    )
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    tournament: Mapped["Tournament"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("tournament_id", "entrant_id", name="uq_tournament_entry"),
        Index("idx_tournament_entries_seeding", "tournament_id", "status", "joined_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<TournamentEntry(tournament={self.tournament_id}, "
            f"entrant={self.entrant_id}, status='{self.status}')>"
        )


# =============================================================================
# Match Model
# =============================================================================

class Match(Base):
    """
    One bracket match, from placeholder to result.

    Rows are created in bulk at bracket generation. Later-round rows start
    with empty slots and status 'pending'; progression writes entrants into
    them and flips them to 'scheduled' once both slots are filled.

    Match status lifecycle:
    - 'pending': At least one slot still waiting on a feeder match
    - 'scheduled': Both slots known, result can be reported
    - 'in_progress': Started by an admin
    - 'completed': Result recorded (winner set, except round-robin draws)
    - 'cancelled': Withdrawn by an admin

    Bracket kinds:
    - 'winners': Single elimination, round robin and the DE upper bracket
    - 'losers': DE lower bracket
    - 'finals': DE grand finals (match 1) and bracket reset (match 2)
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )

    bracket: Mapped[str] = mapped_column(String(10), nullable=False)
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    # Contiguous from 1 within (tournament, bracket, round)
    match_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Position in the full power-of-two draw of this round
    # Used for routing: position p feeds position ceil(p/2) in the next round
    # Differs from match_number only in winners round 1 when byes exist
    draw_position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Running creation order across the whole bracket
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    # Entrants (opaque user/team ids)
    slot_a_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    slot_b_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # ==========================================================================
    # Result fields
    # ==========================================================================

    score_a: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    score_b: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    winner_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=MatchStatus.PENDING.value, nullable=False
    )

    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    tournament: Mapped["Tournament"] = relationship(back_populates="matches")

    __table_args__ = (
        UniqueConstraint(
            "tournament_id", "bracket", "round", "match_number",
            name="uq_matches_bracket_position",
        ),
        Index("idx_matches_tournament_status", "tournament_id", "status"),
        Index("idx_matches_draw", "tournament_id", "bracket", "round", "draw_position"),
        CheckConstraint("score_a >= 0 AND score_b >= 0", name="ck_matches_scores_non_negative"),
    )

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED.value

    @property
    def has_both_slots(self) -> bool:
        return self.slot_a_id is not None and self.slot_b_id is not None

    def occupant(self, slot: str) -> Optional[int]:
        """Entrant in slot 'a' or 'b'."""
        return self.slot_a_id if slot == "a" else self.slot_b_id

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, {self.bracket} R{self.round} #{self.match_number}, "
            f"{self.slot_a_id} vs {self.slot_b_id}, status='{self.status}')>"
        )


# =============================================================================
# Wallet Models
# =============================================================================

class Wallet(Base):
    """One balance per user. Only the ledger module writes to it."""
    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Wallet(user={self.user_id}, balance={self.balance})>"


class WalletTransaction(Base):
    """
    Ledger entry for a wallet movement.

    Types: 'deposit', 'withdrawal', 'tournament_entry', 'tournament_prize',
    'tournament_refund'. Amounts are always positive; the type carries the
    direction.
    """
    __tablename__ = "wallet_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="completed", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_wallet_transactions_user", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<WalletTransaction(user={self.user_id}, type='{self.type}', amount={self.amount})>"


# =============================================================================
# Notification Model
# =============================================================================

class Notification(Base):
    """Outbox row for a user notification. Delivery is not handled here."""
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_notifications_user_unread", "user_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Notification(user={self.user_id}, kind='{self.kind}')>"
