"""Range checks applied to forecast requests before they reach a provider."""

from app.domain import HUMIDITY_RANGE_PERCENT, TEMPERATURE_RANGE_C, ForecastRequest
from app.errors import ForecastValidationError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/validation")


def _within(value: float, bounds: tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


def validate_request(request: ForecastRequest) -> None:
    """
    Reject requests whose temperature or humidity is out of range.

    Temperature is checked first, then humidity. Wind speed, weather, season and
    the calendar flags are passed through unchecked.
    """
    if not _within(request.temperature, TEMPERATURE_RANGE_C):
        logger.info("Rejected forecast request", extra={"field": "temperature", "value": request.temperature})
        raise ForecastValidationError(
            "temperature",
            f"Temperature must be between {TEMPERATURE_RANGE_C[0]:g}°C and {TEMPERATURE_RANGE_C[1]:g}°C",
        )

    if not _within(request.humidity, HUMIDITY_RANGE_PERCENT):
        logger.info("Rejected forecast request", extra={"field": "humidity", "value": request.humidity})
        raise ForecastValidationError(
            "humidity",
            f"Humidity must be between {HUMIDITY_RANGE_PERCENT[0]:g}% and {HUMIDITY_RANGE_PERCENT[1]:g}%",
        )
