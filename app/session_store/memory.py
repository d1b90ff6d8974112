"""In-memory session store with TTL; the default for single-process deployments."""

import threading
import time
import uuid
from typing import Any, Optional

from app.app_state import ForecastSession
from app.session_store.base import SessionStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="session_store/in_memory_session_store")


class InMemorySessionStore(SessionStore):
    """Thread-safe, TTL-aware in-memory store holding live ``ForecastSession`` objects."""

    def __init__(self, ttl_seconds: int = 3600, max_age_seconds: int | None = None) -> None:
        """Initialize the store with a TTL (seconds) and optional absolute max age."""
        logger.debug("Initializing InMemorySessionStore")
        self.ttl = ttl_seconds
        self.max_age = max_age_seconds
        self._sessions: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _expired(self, exp: float, created_at: float) -> bool:
        """Return True if the session is beyond TTL or absolute max age."""
        now = time.monotonic()
        if exp < now:
            return True
        if self.max_age is None:
            return False
        return now - created_at > self.max_age

    def _next_expiry(self, created_at: float) -> float:
        """Compute the next expiry time, capped by absolute max age."""
        next_exp = time.monotonic() + self.ttl
        if self.max_age is None:
            return next_exp
        return min(next_exp, created_at + self.max_age)

    def create_session(self, session: Optional[ForecastSession] = None) -> str:
        """Create a new session and return its id."""
        with self._lock:
            sid = str(uuid.uuid4())
            created_at = time.monotonic()
            self._sessions[sid] = {
                "state": session or ForecastSession(),
                "created_at": created_at,
                "exp": self._next_expiry(created_at),
            }
            return sid

    def get_session(self, session_id: str) -> Optional[ForecastSession]:
        """Return the session state, refreshing TTL, or None if missing/expired."""
        with self._lock:
            data = self._sessions.get(session_id)
            if not data:
                return None
            if self._expired(data["exp"], data["created_at"]):
                self._sessions.pop(session_id, None)
                return None
            # refresh TTL on access
            data["exp"] = self._next_expiry(data["created_at"])
            return data["state"]

    def update_session(self, session_id: str, session: ForecastSession) -> None:
        """Replace stored state; no-op if missing/expired."""
        with self._lock:
            data = self._sessions.get(session_id)
            if not data or self._expired(data["exp"], data["created_at"]):
                self._sessions.pop(session_id, None)
                return
            data["state"] = session
            data["exp"] = self._next_expiry(data["created_at"])

    def delete_session(self, session_id: str) -> None:
        """Remove a session if it exists."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def clear(self) -> None:
        """Clear all sessions."""
        with self._lock:
            self._sessions.clear()
