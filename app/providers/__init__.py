"""Forecast providers: the async boundary between a submission and a result."""

from .base import ForecastProvider
from .factory import build_forecast_provider
from .mock import HeuristicForecastProvider
from .remote import RemoteForecastProvider

__all__ = [
    "build_forecast_provider",
    "ForecastProvider",
    "HeuristicForecastProvider",
    "RemoteForecastProvider",
]
