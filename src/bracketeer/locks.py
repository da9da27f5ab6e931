"""Per-tournament advisory locks for generation and result reporting."""

from __future__ import annotations

import hashlib
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from bracketeer.config import settings

logger = logging.getLogger(__name__)


def advisory_lock_key(name: str) -> int:
    """Return a deterministic signed 64-bit lock key from a lock name."""
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=True)


def tournament_lock_key(tournament_id: int) -> int:
    """Lock key shared by every bracket operation on one tournament."""
    return advisory_lock_key(f"bracketeer:tournament:{tournament_id}")


def tournament_lock(session: Session, tournament_id: int) -> bool:
    """
    Take the tournament's advisory lock for the rest of the transaction.

    On PostgreSQL this is ``pg_advisory_xact_lock``, released automatically
    at commit or rollback, bounded by ``lock_timeout_seconds``. Other
    databases serialise writers on their own and this is a no-op.

    Returns:
        True if an advisory lock was taken.
    """
    bind = session.get_bind()
    if bind.dialect.name != "postgresql":
        return False

    key = tournament_lock_key(tournament_id)
    timeout_ms = int(max(settings.lock_timeout_seconds, 0.0) * 1000)
    session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
    session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
    logger.debug("Acquired advisory lock for tournament %d (key=%d)", tournament_id, key)
    return True
