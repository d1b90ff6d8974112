"""Run a forecast submission end to end: validate, call the provider, record the result."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Set

from app.app_state import ForecastSession
from app.domain import ForecastRequest, ForecastResult, HistoryEntry
from app.errors import EngineFailure, ForecastInFlight
from app.providers import ForecastProvider
from app.validation import validate_request
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/forecast_service")


class ForecastService:
    """
    Owns the provider and the per-session in-flight guard.

    At most one forecast per session may be outstanding. The guard is set before
    the provider is awaited and released whether the call succeeds or fails, so
    a failed call never blocks later submissions.
    """

    def __init__(self, provider: ForecastProvider) -> None:
        self.provider = provider
        self._in_flight: Set[str] = set()

    def is_in_flight(self, session_id: str) -> bool:
        return session_id in self._in_flight

    async def forecast(
        self,
        session_id: str,
        session: ForecastSession,
        request: ForecastRequest,
    ) -> ForecastResult:
        """
        Run the provider for ``request`` without recording anything.

        Raises ``ForecastInFlight`` if the session already has an outstanding
        call, ``ForecastValidationError`` for out-of-range inputs and
        ``EngineFailure`` if the provider fails.
        """
        if self.is_in_flight(session_id):
            logger.info("Rejected concurrent forecast submission", extra={"session_id": session_id})
            raise ForecastInFlight(session_id)

        validate_request(request)

        self._in_flight.add(session_id)
        session.begin_forecast()
        try:
            logger.info(
                "Requesting forecast",
                extra={"session_id": session_id, "provider": self.provider.name, "date": request.date},
            )
            return await self.provider.predict(request)
        except EngineFailure:
            logger.warning("Forecast provider failed", extra={"session_id": session_id}, exc_info=True)
            raise
        except Exception as exc:
            logger.exception("Unexpected forecast provider error", extra={"session_id": session_id})
            raise EngineFailure(f"Forecast provider error: {exc}") from exc
        finally:
            session.end_forecast()
            self._in_flight.discard(session_id)

    def record(
        self,
        session_id: str,
        session: ForecastSession,
        request: ForecastRequest,
        result: ForecastResult,
    ) -> HistoryEntry:
        """Append a finished run to ``session`` and make it the current result."""
        entry = session.record_forecast(request, result, completed_at=datetime.now(timezone.utc))
        logger.info(
            "Forecast completed",
            extra={"session_id": session_id, "prediction": result.prediction, "confidence": result.confidence},
        )
        return entry

    async def submit(
        self,
        session_id: str,
        session: ForecastSession,
        request: ForecastRequest,
    ) -> HistoryEntry:
        """
        Forecast ``request`` and record it on ``session``.

        Only success touches the session's ledger or current result. Callers
        holding a stored copy of the session should use ``forecast`` and
        ``record`` against a fresh read instead, so changes made while the
        provider ran are kept.
        """
        result = await self.forecast(session_id, session, request)
        return self.record(session_id, session, request, result)
