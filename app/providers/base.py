"""Interface shared by every forecast provider."""

from __future__ import annotations

from typing import Protocol

from app.domain import ForecastRequest, ForecastResult


class ForecastProvider(Protocol):
    """Anything that can turn a validated request into a forecast.

    Implementations may suspend the caller (simulated latency, network I/O) and
    signal failure by raising ``app.errors.EngineFailure``.
    """

    name: str

    async def predict(self, request: ForecastRequest) -> ForecastResult:
        """Return the forecast for ``request``."""
        ...
