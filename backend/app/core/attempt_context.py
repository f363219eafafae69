"""
Per-session attempt timing.

The start of each attempt is recorded server-side in the signed session
cookie (Starlette SessionMiddleware), keyed by test id, so the elapsed-time
check at submission never trusts a client-supplied clock.

An AttemptContext is built per request from request.session and handed to
the submission service explicitly.
"""
from datetime import datetime
from typing import Any, MutableMapping, Optional

from app.core.datetime_utils import from_epoch_seconds, utc_now

_SESSION_KEY = "attempts"


class AttemptContext:
    """Attempt start markers for one client session."""

    def __init__(self, session: MutableMapping[str, Any]):
        self._session = session

    def _attempts(self) -> dict:
        return dict(self._session.get(_SESSION_KEY) or {})

    def _store(self, attempts: dict) -> None:
        # Reassign so the session middleware sees the change
        self._session[_SESSION_KEY] = attempts

    def start(self, test_id: str) -> datetime:
        """Record (or restart) the attempt for test_id at the current time."""
        now = utc_now()
        attempts = self._attempts()
        attempts[test_id] = now.timestamp()
        self._store(attempts)
        return now

    def ensure_started(self, test_id: str) -> datetime:
        """Return the recorded start, recording one now if none exists."""
        started = self.started_at(test_id)
        if started is None:
            started = self.start(test_id)
        return started

    def started_at(self, test_id: str) -> Optional[datetime]:
        raw = self._attempts().get(test_id)
        if raw is None:
            return None
        return from_epoch_seconds(float(raw))

    def elapsed_seconds(self, test_id: str) -> Optional[float]:
        """Seconds since the attempt started, or None when it never started."""
        started = self.started_at(test_id)
        if started is None:
            return None
        return (utc_now() - started).total_seconds()

    def clear(self, test_id: str) -> None:
        attempts = self._attempts()
        if attempts.pop(test_id, None) is not None:
            self._store(attempts)
