"""Heuristic demand model: weather/calendar adjustments plus random jitter.

All scoring is deterministic except the jitter and the confidence draw, which
come from an injectable random source so tests can pin them.
"""
from __future__ import annotations

import math
import random
from typing import Dict, Protocol

from app.domain import ForecastRequest, ForecastResult, Season, Weather
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/forecast_engine")


class RandomSource(Protocol):
    """Anything with a ``random()`` returning a float in [0, 1)."""

    def random(self) -> float:
        ...


BASE_DEMAND = 3000
DEMAND_FLOOR = 500
JITTER_SPAN = 400  # jitter lands in [-200, +200]
CONFIDENCE_BASE = 85
CONFIDENCE_SPAN = 10

WEATHER_ADJUSTMENTS: Dict[str, int] = {
    Weather.CLEAR.value: 1200,
    Weather.MIST.value: 200,
    Weather.LIGHT_RAIN.value: -800,
    Weather.HEAVY_RAIN.value: -2000,
}

SEASON_ADJUSTMENTS: Dict[str, int] = {
    Season.SUMMER.value: 1000,
    Season.SPRING.value: 500,
    Season.FALL.value: 200,
    Season.WINTER.value: -800,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def _temperature_adjustment(temperature: float) -> int:
    if temperature > 25:
        return 1500
    if temperature > 15:
        return 800
    if temperature < 5:
        return -1000
    return 0


def _category_key(value) -> str:
    return getattr(value, "value", value)


def base_demand(request: ForecastRequest) -> int:
    """Return the pre-jitter total, clamped to ``DEMAND_FLOOR``."""
    total = BASE_DEMAND
    total += _temperature_adjustment(request.temperature)
    total += WEATHER_ADJUSTMENTS.get(_category_key(request.weather), 0)
    total += SEASON_ADJUSTMENTS.get(_category_key(request.season), 0)

    if not request.working_day:
        total += 800
    if request.holiday:
        total += 400

    if request.humidity > 80:
        total -= 300
    if request.wind_speed > 30:
        total -= 500

    return max(DEMAND_FLOOR, total)


def predict(request: ForecastRequest, rng: RandomSource | None = None) -> ForecastResult:
    """
    Score a request.

    Jitter is added after the floor clamp, so a clamped request can come out
    below ``DEMAND_FLOOR`` by up to half the jitter span.
    """
    source = rng if rng is not None else random
    base = base_demand(request)
    jitter = (source.random() - 0.5) * JITTER_SPAN
    prediction = round_half_up(base + jitter)
    confidence = round_half_up(CONFIDENCE_BASE + source.random() * CONFIDENCE_SPAN)

    logger.debug(
        "Scored forecast request",
        extra={"base": base, "jitter": round(jitter, 2), "prediction": prediction, "confidence": confidence},
    )
    return ForecastResult(prediction=prediction, confidence=confidence)
