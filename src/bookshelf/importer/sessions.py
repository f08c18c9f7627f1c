# ABOUTME: Time-limited holding area for parsed-but-uncommitted import batches.
# ABOUTME: Each session is created once and consumed by exactly one commit.

import logging
import time
import uuid
from collections.abc import Callable
from typing import Generic, TypeVar

from bookshelf.importer.errors import SessionNotFoundError
from bookshelf.metadata.cache import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

CSV_SESSION_TTL = 60 * 60
AUDIBLE_SESSION_TTL = 30 * 60


class ImportSessionStore(Generic[T]):
    """Session id -> payload, expiring after a fixed TTL.

    Expired sessions are never handed out, even before a sweep removes them.
    """

    def __init__(
        self,
        ttl: float,
        *,
        expired_message: str = "Import session not found",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: TTLCache[T] = TTLCache(ttl, clock=clock)
        self._expired_message = expired_message

    def create(self, payload: T) -> str:
        """Store a payload under a fresh id, sweeping expired sessions first."""
        removed = self._sessions.sweep()
        if removed:
            logger.debug("Swept %d expired import session(s)", removed)
        session_id = str(uuid.uuid4())
        self._sessions.set(session_id, payload)
        return session_id

    def peek(self, session_id: str) -> T | None:
        return self._sessions.get(session_id)

    def take(self, session_id: str) -> T:
        """Remove and return a live session.

        Raises:
            SessionNotFoundError: If the id is unknown, expired, or already taken.
        """
        payload = self._sessions.pop(session_id)
        if payload is None:
            raise SessionNotFoundError(self._expired_message)
        return payload

    def sweep(self) -> int:
        return self._sessions.sweep()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
