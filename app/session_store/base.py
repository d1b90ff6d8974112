"""Shared protocol for session storage backends."""

from typing import Optional, Protocol

from app.app_state import ForecastSession


class SessionStore(Protocol):
    """Protocol for session storage backends."""
    def create_session(self, session: Optional[ForecastSession] = None) -> str:
        """Persist a new session and return its id."""

    def get_session(self, session_id: str) -> Optional[ForecastSession]:
        """Fetch a session by id, returning None if missing or expired."""

    def update_session(self, session_id: str, session: ForecastSession) -> None:
        """Replace the stored state of an existing session, ignoring missing/expired ids."""

    def delete_session(self, session_id: str) -> None:
        """Delete a session without raising if it is absent."""

    def clear(self) -> None:
        """Clear all stored sessions."""
