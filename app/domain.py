"""Domain vocabulary and schemas for bike-rental demand forecasts.

This module defines the contract shared by the forecast providers, the history
ledger and the HTTP layer: enums for the categorical inputs and Pydantic models
for requests, results and ledger entries. No forecasting logic lives here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class Weather(str, Enum):
    """Weather categories understood by the forecast engine."""
    CLEAR = "clear"
    MIST = "mist"
    LIGHT_RAIN = "light_rain"
    HEAVY_RAIN = "heavy_rain"


class Season(str, Enum):
    """Meteorological seasons understood by the forecast engine."""
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class SortOrder(str, Enum):
    """Display order for the history browser."""
    NEWEST = "newest"
    OLDEST = "oldest"


TEMPERATURE_RANGE_C = (-20.0, 50.0)
HUMIDITY_RANGE_PERCENT = (0.0, 100.0)


class ForecastRequest(BaseModel):
    """Weather and calendar inputs for a single forecast.

    ``weather`` and ``season`` are kept as plain strings: values outside the
    enums are accepted and simply contribute no adjustment. Range checks for
    temperature and humidity happen in ``app.validation``, not here.
    """

    model_config = ConfigDict(populate_by_name=True)

    date: str
    temperature: float
    humidity: float
    wind_speed: float = Field(alias="windSpeed")
    weather: str
    season: str
    holiday: bool = False
    working_day: bool = Field(default=True, alias="workingDay")


class ForecastResult(BaseModel):
    """Provider output: expected rentals and a confidence percentage."""
    prediction: int = Field(ge=0)
    confidence: int = Field(ge=0, le=100)


class HistoryEntry(_StrictBaseModel):
    """One completed forecast run; immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: str
    prediction: int
    weather: str
    temperature: float
    timestamp: datetime


class LedgerAggregate(_StrictBaseModel):
    """Derived totals across the session history."""
    count: int = 0
    mean: float = 0.0
    latest: int | None = None
