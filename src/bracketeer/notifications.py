"""
Notification outbox.

Bracket operations notify entrants by writing rows to the notifications
table. Each write runs in its own SAVEPOINT so a failure is logged and
dropped without touching the surrounding match or tournament writes.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from bracketeer.db.models import Notification

logger = logging.getLogger(__name__)

TOURNAMENT_STARTED = "tournament_started"
MATCH_SCHEDULED = "match_scheduled"
MATCH_RESULT = "match_result"
MATCH_RESCHEDULED = "match_rescheduled"
TOURNAMENT_COMPLETED = "tournament_completed"
PRIZE_AWARDED = "prize_awarded"

TITLES = {
    TOURNAMENT_STARTED: "Tournament started",
    MATCH_SCHEDULED: "Match scheduled",
    MATCH_RESULT: "Match result",
    MATCH_RESCHEDULED: "Match rescheduled",
    TOURNAMENT_COMPLETED: "Tournament completed",
    PRIZE_AWARDED: "Prize awarded",
}


def _jsonable(payload: dict[str, Any]) -> dict[str, Any]:
    # Decimals and datetimes are stored as strings in the JSON column
    out = {}
    for key, value in payload.items():
        if value is None or isinstance(value, (str, int, float, bool, list, dict)):
            out[key] = value
        elif hasattr(value, "isoformat"):
            out[key] = value.isoformat()
        else:
            out[key] = str(value)
    return out


class Notifier:
    """Writes outbox rows; delivery is someone else's job."""

    def __init__(self, session: Session):
        self.session = session
        self.sent = 0
        self.failed = 0

    def notify(self, user_id: Optional[int], kind: str, payload: Optional[dict] = None) -> bool:
        """
        Queue one notification.

        Returns:
            True if the row was written, False if it was skipped or failed.
        """
        if user_id is None:
            return False
        try:
            with self.session.begin_nested():
                self.session.add(
                    Notification(
                        user_id=user_id,
                        kind=kind,
                        title=TITLES.get(kind, kind.replace("_", " ").capitalize()),
                        payload=_jsonable(payload or {}),
                    )
                )
                self.session.flush()
        except Exception as e:
            self.failed += 1
            logger.warning("Failed to queue %s notification for user %s: %s", kind, user_id, e)
            return False
        self.sent += 1
        return True

    def notify_many(self, user_ids: Iterable[Optional[int]], kind: str, payload: Optional[dict] = None) -> int:
        return sum(1 for user_id in user_ids if self.notify(user_id, kind, payload))
