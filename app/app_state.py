"""Per-session application state and its mutation entry points."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from app.domain import ForecastRequest, ForecastResult, HistoryEntry
from app.ledger import HistoryLedger


@dataclass
class CurrentForecast:
    """The most recent result with the request that produced it."""
    request: ForecastRequest
    result: ForecastResult
    completed_at: datetime


@dataclass
class ForecastSession:
    """
    Everything a single user session owns: the history ledger, the result on
    screen and whether a forecast is outstanding.

    Callers mutate it only through the methods below.
    """
    history: HistoryLedger = field(default_factory=HistoryLedger)
    current: Optional[CurrentForecast] = None
    loading: bool = False

    def begin_forecast(self) -> None:
        self.loading = True

    def end_forecast(self) -> None:
        self.loading = False

    def set_current_result(
        self,
        request: ForecastRequest,
        result: ForecastResult,
        completed_at: datetime | None = None,
    ) -> CurrentForecast:
        self.current = CurrentForecast(
            request=request,
            result=result,
            completed_at=completed_at or datetime.now(timezone.utc),
        )
        return self.current

    def record_forecast(
        self,
        request: ForecastRequest,
        result: ForecastResult,
        completed_at: datetime | None = None,
    ) -> HistoryEntry:
        """Append the completed run to the ledger and make it the current result."""
        completed_at = completed_at or datetime.now(timezone.utc)
        entry = self.history.append(
            date=request.date,
            prediction=result.prediction,
            weather=request.weather,
            temperature=request.temperature,
            timestamp=completed_at,
        )
        self.set_current_result(request, result, completed_at)
        return entry

    def clear_history(self) -> None:
        self.history.clear()
