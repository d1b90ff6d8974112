"""View models for the forecast result card, the dashboard and the history browser.

Everything here is read-only: views are built from a ``ForecastSession`` and
never mutate it. Dashboard charts are fixed illustrative data, not derived from
the ledger.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from app.app_state import CurrentForecast, ForecastSession
from app.domain import HistoryEntry, SortOrder, Weather
from app.forecast_engine import round_half_up


class _ViewModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class DemandLevel(str, Enum):
    """Coarse demand band shown next to a forecast."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class UsagePattern(str, Enum):
    PEAK = "peak"
    NORMAL = "normal"


WEATHER_ICONS = {
    Weather.CLEAR.value: "☀️",
    Weather.MIST.value: "🌫️",
    Weather.LIGHT_RAIN.value: "🌦️",
    Weather.HEAVY_RAIN.value: "🌧️",
}
DEFAULT_WEATHER_ICON = "🌤️"

PEAK_USAGE_THRESHOLD = 4000
MODEL_ACCURACY_PERCENT = 94.2


def demand_level(prediction: int) -> DemandLevel:
    if prediction < 2000:
        return DemandLevel.LOW
    if prediction < 5000:
        return DemandLevel.MEDIUM
    if prediction < 7000:
        return DemandLevel.HIGH
    return DemandLevel.VERY_HIGH


def weather_icon(weather: str) -> str:
    return WEATHER_ICONS.get(weather, DEFAULT_WEATHER_ICON)


def build_insights(prediction: int, temperature: float) -> List[str]:
    """Operator hints for the result card."""
    if demand_level(prediction) in (DemandLevel.HIGH, DemandLevel.VERY_HIGH):
        stock = "High demand expected: consider increasing the bike supply."
    else:
        stock = "Moderate demand: the usual bike supply is sufficient."

    if temperature > 25:
        comfort = "Warm temperatures favour bike usage."
    elif temperature < 10:
        comfort = "Low temperatures may reduce demand."
    else:
        comfort = "Temperature is comfortable for cycling."

    return [stock, comfort, "Monitor live conditions to adjust station distribution."]


class ForecastView(_ViewModel):
    """Result card for the current forecast."""
    prediction: int
    confidence: int
    date: str
    weather: str
    weather_icon: str
    temperature: float
    demand_level: DemandLevel
    usage: UsagePattern
    insights: List[str] = Field(default_factory=list)


class CurrentForecastView(_ViewModel):
    loading: bool = False
    forecast: ForecastView | None = None


class HistoryView(_ViewModel):
    """History browser: entries in display order plus footer totals."""
    order: SortOrder
    entries: List[HistoryEntry] = Field(default_factory=list)
    total: int = 0
    average: int = 0


class TrendPoint(_ViewModel):
    month: str
    predicted: int
    actual: int


class WeatherDemand(_ViewModel):
    weather: str
    bikes: int


class DashboardView(_ViewModel):
    total_predictions: int
    average_demand: int
    last_prediction: int | None = None
    model_accuracy: float = MODEL_ACCURACY_PERCENT
    monthly_trend: List[TrendPoint] = Field(default_factory=list)
    demand_by_weather: List[WeatherDemand] = Field(default_factory=list)


MONTHLY_TREND = [
    TrendPoint(month="Jan", predicted=3200, actual=3100),
    TrendPoint(month="Feb", predicted=3500, actual=3400),
    TrendPoint(month="Mar", predicted=4200, actual=4000),
    TrendPoint(month="Apr", predicted=4800, actual=4900),
    TrendPoint(month="May", predicted=5200, actual=5100),
    TrendPoint(month="Jun", predicted=5800, actual=5700),
]

DEMAND_BY_WEATHER = [
    WeatherDemand(weather=Weather.CLEAR.value, bikes=5800),
    WeatherDemand(weather=Weather.MIST.value, bikes=4200),
    WeatherDemand(weather=Weather.LIGHT_RAIN.value, bikes=2800),
    WeatherDemand(weather=Weather.HEAVY_RAIN.value, bikes=1200),
]


def build_forecast_view(current: CurrentForecast) -> ForecastView:
    prediction = current.result.prediction
    request = current.request
    return ForecastView(
        prediction=prediction,
        confidence=current.result.confidence,
        date=request.date,
        weather=request.weather,
        weather_icon=weather_icon(request.weather),
        temperature=request.temperature,
        demand_level=demand_level(prediction),
        usage=UsagePattern.PEAK if prediction > PEAK_USAGE_THRESHOLD else UsagePattern.NORMAL,
        insights=build_insights(prediction, request.temperature),
    )


def build_current_view(session: ForecastSession, *, loading: bool | None = None) -> CurrentForecastView:
    return CurrentForecastView(
        loading=session.loading if loading is None else loading,
        forecast=build_forecast_view(session.current) if session.current else None,
    )


def build_history_view(session: ForecastSession, order: SortOrder | str = SortOrder.NEWEST) -> HistoryView:
    aggregate = session.history.aggregate()
    return HistoryView(
        order=SortOrder(order),
        entries=session.history.sorted_view(order),
        total=aggregate.count,
        average=round_half_up(aggregate.mean),
    )


def build_dashboard_view(session: ForecastSession) -> DashboardView:
    aggregate = session.history.aggregate()
    return DashboardView(
        total_predictions=aggregate.count,
        average_demand=round_half_up(aggregate.mean),
        last_prediction=aggregate.latest,
        monthly_trend=[point.model_copy() for point in MONTHLY_TREND],
        demand_by_weather=[item.model_copy() for item in DEMAND_BY_WEATHER],
    )
