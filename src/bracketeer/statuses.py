"""Shared status and kind definitions.

This module is the single source of truth for match statuses, bracket kinds,
tournament formats and tournament statuses, plus the status groups reused by
the builder, the progression services and the bracket view.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class MatchStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BracketKind(str, Enum):
    WINNERS = "winners"
    LOSERS = "losers"
    FINALS = "finals"


class TournamentFormat(str, Enum):
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    ROUND_ROBIN = "round_robin"


class TournamentStatus(str, Enum):
    DRAFT = "draft"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EntryStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Slot(str, Enum):
    A = "a"
    B = "b"


# Canonical status groups.
MATCH_STATUS_GROUPS: dict[str, tuple[MatchStatus, ...]] = {
    # Statuses a result can be reported against.
    "reportable": (MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS),
    # Statuses that are no longer actionable.
    "terminal": (MatchStatus.COMPLETED, MatchStatus.CANCELLED),
    # Matches still awaiting a result (used for round-robin completion).
    "open": (MatchStatus.PENDING, MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS),
    # Statuses a match may hold once both slots are filled.
    "filled": (
        MatchStatus.SCHEDULED,
        MatchStatus.IN_PROGRESS,
        MatchStatus.COMPLETED,
        MatchStatus.CANCELLED,
    ),
    "all": tuple(MatchStatus),
}


def get_status_group(group_name: str) -> tuple[MatchStatus, ...]:
    """Return a named status group, raising KeyError for unknown names."""
    return MATCH_STATUS_GROUPS[group_name]


def normalize_status_filter(raw_statuses: Iterable[str] | None) -> list[MatchStatus]:
    """Normalize requested statuses against known values.

    - If no statuses are provided, every status is returned.
    - Unknown statuses are ignored.
    - Order is preserved and duplicates are removed.
    """
    if raw_statuses is None:
        return list(MatchStatus)

    seen: set[MatchStatus] = set()
    normalized: list[MatchStatus] = []

    for raw in raw_statuses:
        value = raw.strip().lower()
        try:
            status = MatchStatus(value)
        except ValueError:
            continue
        if status in seen:
            continue
        seen.add(status)
        normalized.append(status)

    return normalized or list(MatchStatus)
