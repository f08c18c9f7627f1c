# ABOUTME: Unit tests for the expiring import session store.
# ABOUTME: A controllable clock drives expiry without sleeping.

import pytest

from bookshelf.importer.errors import SessionNotFoundError
from bookshelf.importer.sessions import ImportSessionStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestImportSessionStore:
    """Tests for ImportSessionStore."""

    def test_create_and_take_once(self) -> None:
        """A session is handed out exactly once."""
        store: ImportSessionStore[list[str]] = ImportSessionStore(60, expired_message="gone")
        session_id = store.create(["row"])

        assert session_id in store
        assert store.peek(session_id) == ["row"]
        assert store.take(session_id) == ["row"]
        with pytest.raises(SessionNotFoundError, match="gone"):
            store.take(session_id)

    def test_ids_are_unique(self) -> None:
        """Every create returns a fresh id."""
        store: ImportSessionStore[int] = ImportSessionStore(60)
        assert store.create(1) != store.create(1)

    def test_expired_session_is_never_returned(self) -> None:
        """Past the TTL a session is gone even before a sweep."""
        clock = FakeClock()
        store: ImportSessionStore[str] = ImportSessionStore(60, clock=clock)
        session_id = store.create("payload")

        clock.now = 61
        assert store.peek(session_id) is None
        with pytest.raises(SessionNotFoundError):
            store.take(session_id)

    def test_create_sweeps_expired(self) -> None:
        """Creating a session removes expired ones."""
        clock = FakeClock()
        store: ImportSessionStore[str] = ImportSessionStore(60, clock=clock)
        store.create("old")
        clock.now = 100
        store.create("new")
        assert len(store) == 1

    def test_unknown_id(self) -> None:
        """Unknown ids raise with the configured message."""
        store: ImportSessionStore[str] = ImportSessionStore(60, expired_message="expired")
        with pytest.raises(SessionNotFoundError, match="expired"):
            store.take("nope")
