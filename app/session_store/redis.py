"""Redis-backed session store with TTL."""

import json
import time
import uuid
from datetime import datetime
from typing import Optional

from app.app_state import CurrentForecast, ForecastSession
from app.domain import ForecastRequest, ForecastResult, HistoryEntry
from app.ledger import HistoryLedger
from app.session_store.base import SessionStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="session_store/redis_session_store")


class RedisSessionStore(SessionStore):
    """Redis-backed sessions with TTL. Stores state as JSON; the loading flag is not persisted."""

    def __init__(
        self,
        client,
        ttl_seconds: int = 3600,
        max_age_seconds: int | None = None,
        prefix: str = "session:",
    ) -> None:
        """Initialize with a Redis client, TTL, and optional absolute max age."""
        logger.debug("Initializing RedisSessionStore")
        self.client = client
        self.ttl = ttl_seconds
        self.max_age = max_age_seconds
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        """Return the Redis key for a session id."""
        return f"{self.prefix}{session_id}"

    @staticmethod
    def _serialize_current(current: CurrentForecast | None):
        if not current:
            return None
        return {
            "request": current.request.model_dump(mode="json", by_alias=True),
            "result": current.result.model_dump(mode="json"),
            "completed_at": current.completed_at.isoformat(),
        }

    @staticmethod
    def _deserialize_current(data: dict | None) -> CurrentForecast | None:
        if not data:
            return None
        return CurrentForecast(
            request=ForecastRequest.model_validate(data["request"]),
            result=ForecastResult.model_validate(data["result"]),
            completed_at=datetime.fromisoformat(data["completed_at"]),
        )

    def _safe_dump(self, session: ForecastSession, *, created_at: float) -> bytes | None:
        """Serialize session state to JSON bytes."""
        try:
            data = {
                "history": [entry.model_dump(mode="json") for entry in session.history.entries],
                "current": self._serialize_current(session.current),
                "created_at": created_at,
            }
            return json.dumps(data).encode("utf-8")
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to serialize session state: %s", exc)
            return None

    def _safe_load(self, raw: bytes) -> Optional[tuple[ForecastSession, float]]:
        """Deserialize JSON bytes into session state and created_at."""
        try:
            data = json.loads(raw.decode("utf-8"))
            history = HistoryLedger(HistoryEntry.model_validate(item) for item in data.get("history") or [])
            session = ForecastSession(history=history, current=self._deserialize_current(data.get("current")))
            created_at = data.get("created_at") or time.time()
            return session, float(created_at)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to deserialize session state: %s", exc)
            return None

    def _is_expired(self, created_at: float) -> bool:
        """Return True if the session exceeds absolute max age."""
        if self.max_age is None:
            return False
        return (time.time() - created_at) > self.max_age

    def _ttl_remaining(self, created_at: float) -> int:
        """Return TTL seconds capped by absolute max age."""
        if self.max_age is None:
            return self.ttl
        remaining = int(max(0.0, (created_at + self.max_age) - time.time()))
        return min(self.ttl, remaining)

    def create_session(self, session: Optional[ForecastSession] = None) -> str:
        """Create and persist a new session, returning its id."""
        sid = str(uuid.uuid4())
        created_at = time.time()
        payload = self._safe_dump(session or ForecastSession(), created_at=created_at)
        if payload is None:
            raise RuntimeError("Failed to serialize session state")
        try:
            ttl = self._ttl_remaining(created_at)
            if ttl <= 0:
                raise RuntimeError("Session max age expired before storage")
            self.client.setex(self._key(sid), ttl, payload)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to write session to Redis: %s", exc)
            raise
        return sid

    def _load(self, session_id: str) -> Optional[tuple[ForecastSession, float]]:
        try:
            raw = self.client.get(self._key(session_id))
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to read session from Redis: %s", exc)
            return None
        if not raw:
            return None
        loaded = self._safe_load(raw)
        if not loaded:
            return None
        session, created_at = loaded
        if self._is_expired(created_at):
            self.delete_session(session_id)
            return None
        return session, created_at

    def get_session(self, session_id: str) -> Optional[ForecastSession]:
        """Fetch session state, refreshing TTL, or None if missing/invalid."""
        loaded = self._load(session_id)
        if not loaded:
            return None
        session, created_at = loaded
        try:
            ttl = self._ttl_remaining(created_at)
            if ttl > 0:
                self.client.expire(self._key(session_id), ttl)
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Failed to refresh session TTL: %s", exc)
        return session

    def update_session(self, session_id: str, session: ForecastSession) -> None:
        """Overwrite stored state of an existing session; silently no-ops if missing/invalid."""
        loaded = self._load(session_id)
        if not loaded:
            return
        _previous, created_at = loaded
        serialized = self._safe_dump(session, created_at=created_at)
        if serialized is None:
            return
        try:
            ttl = self._ttl_remaining(created_at)
            if ttl <= 0:
                self.delete_session(session_id)
                return
            self.client.setex(self._key(session_id), ttl, serialized)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to update session in Redis: %s", exc)

    def delete_session(self, session_id: str) -> None:
        """Delete a session if present."""
        try:
            self.client.delete(self._key(session_id))
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to delete session from Redis: %s", exc)

    def clear(self) -> None:
        """Best-effort clear for all sessions under the configured prefix."""
        try:
            for key in self.client.scan_iter(f"{self.prefix}*"):
                self.client.delete(key)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("Failed to clear sessions from Redis: %s", exc)
