"""Exceptions raised by forecast submission, provider calls and export."""


class ForecastAppError(Exception):
    """Base class for recoverable, user-facing errors."""


class ForecastValidationError(ForecastAppError):
    """A submitted request failed a range check; nothing was sent to the provider."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class EngineFailure(ForecastAppError):
    """The forecast provider could not produce a result (network, timeout, bad payload)."""


class ForecastInFlight(ForecastAppError):
    """A forecast for the same session is still outstanding."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"A forecast is already running for session {session_id}")
        self.session_id = session_id


class ExportRefused(ForecastAppError):
    """Export was requested against an empty history."""
