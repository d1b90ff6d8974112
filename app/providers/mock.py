"""In-process provider that runs the heuristic engine behind a simulated delay."""

from __future__ import annotations

import asyncio

from app.domain import ForecastRequest, ForecastResult
from app.forecast_engine import RandomSource, predict
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/heuristic")


class HeuristicForecastProvider:
    """Stand-in for a model backend: sleeps ``latency_seconds`` then scores locally."""

    name = "mock"

    def __init__(self, *, latency_seconds: float = 2.0, rng: RandomSource | None = None) -> None:
        logger.debug("Initializing HeuristicForecastProvider", extra={"latency_seconds": latency_seconds})
        self.latency_seconds = latency_seconds
        self.rng = rng

    async def predict(self, request: ForecastRequest) -> ForecastResult:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)
        return predict(request, self.rng)
