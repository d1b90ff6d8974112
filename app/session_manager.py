"""Session manager facade over pluggable backends."""
from typing import Optional

try:
    import redis  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    redis = None

from app.app_state import ForecastSession
from app.config import settings
from app.session_store import InMemorySessionStore, RedisSessionStore, SessionStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="session_manager")


def _init_store() -> SessionStore:
    """Initialize the backing session store based on configuration."""
    logger.debug(
        f"Initializing session store: redis_url='{mask_url(settings.session_redis_url) if settings.session_redis_url else 'None'}', "
        f"redis package present: {'yes' if redis else 'no'}"
    )
    if settings.session_redis_url and redis:
        try:
            client = redis.Redis.from_url(settings.session_redis_url)
            client.ping()
            logger.info("Using RedisSessionStore", extra={"redis_url": mask_url(settings.session_redis_url)})
            return RedisSessionStore(client, ttl_seconds=settings.session_ttl_seconds)
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Falling back to InMemorySessionStore (Redis unavailable)", extra={"error": str(exc)})
    return InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)


_store: SessionStore = _init_store()


def use_in_memory_store_for_tests(ttl_seconds: int = 3600) -> None:
    """Override store for tests to ensure isolation and determinism."""
    global _store
    _store = InMemorySessionStore(ttl_seconds=ttl_seconds)


def create_session(session: Optional[ForecastSession] = None) -> str:
    """Create and persist a new (empty by default) session, returning its ID."""
    return _store.create_session(session or ForecastSession())


def get_session(session_id: str) -> Optional[ForecastSession]:
    """Fetch session state by ID, refreshing TTL if applicable."""
    return _store.get_session(session_id)


def save_session(session_id: str, session: ForecastSession) -> None:
    """Persist the current state of a session."""
    return _store.update_session(session_id, session)


def delete_session(session_id: str):
    """Delete a session by ID."""
    return _store.delete_session(session_id)


def clear_sessions():
    """Clear all sessions from the backing store (dev/testing)."""
    return _store.clear()
