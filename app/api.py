"""HTTP API for the bike-rental demand forecasting demo."""

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from pydantic import BaseModel

from .app_state import ForecastSession
from .config import settings
from .domain import ForecastRequest, HistoryEntry, SortOrder
from .errors import EngineFailure, ExportRefused, ForecastInFlight, ForecastValidationError
from .export import export_csv, export_filename
from .forecast_service import ForecastService
from .presentation import (
    CurrentForecastView,
    DashboardView,
    ForecastView,
    HistoryView,
    build_current_view,
    build_dashboard_view,
    build_forecast_view,
    build_history_view,
)
from .providers import build_forecast_provider
from .session_manager import create_session, get_session, save_session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/api")

# Optional Redis client for API key checks; fallback to a static key
try:
    import redis  # type: ignore
except ImportError:  # pragma: no cover - exercised implicitly
    redis = None

_redis_client = None
if settings.api_key_redis_url and redis:
    try:
        _redis_client = redis.Redis.from_url(settings.api_key_redis_url)
        logger.info("API key checks will use Redis backend")
    except Exception as exc:  # pragma: no cover - safety net
        logger.warning("Failed to connect to Redis for API key checks; falling back to static key",
                       extra={"error": str(exc)})


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate X-API-Key header against Redis (if configured) or the static api_key setting.
    """
    # If no key configured anywhere, allow requests (dev/default mode).
    if not settings.api_key and not _redis_client:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if _redis_client:
        try:
            if _redis_client.sismember(settings.api_key_redis_set, x_api_key):
                return
        except Exception as e:  # pragma: no cover - defensive
            logger.warning("Redis API key lookup error; falling back to static key",
                           extra={"error": str(e)})

    if settings.api_key and hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
FORECAST_SERVICE = ForecastService(build_forecast_provider(settings))


class StartResponse(BaseModel):
    """Session bootstrap response."""
    session_id: str


class ForecastResponse(BaseModel):
    """Outcome of a successful forecast submission."""
    forecast: ForecastView
    entry: HistoryEntry


class ClearResponse(BaseModel):
    """Number of history entries removed."""
    cleared: int


def _load_session(session_id: str) -> ForecastSession:
    """Return the session state or raise a 404."""
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown session ID")
    return session


@router.post("/session/start", response_model=StartResponse)
def start_session():
    """Create a new, empty session."""
    session_id = create_session()
    logger.info("Started session", extra={"session_id": session_id})
    return StartResponse(session_id=session_id)


@router.post("/session/{session_id}/forecast", response_model=ForecastResponse)
async def submit_forecast(session_id: str, req: ForecastRequest):
    """Validate inputs, run the forecast provider and record the result."""
    session = _load_session(session_id)

    try:
        result = await FORECAST_SERVICE.forecast(session_id, session, req)
    except ForecastInFlight as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ForecastValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"field": exc.field, "message": exc.message},
        )
    except EngineFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not process the forecast. Try again. ({exc})",
        )

    # Re-read so a history clear made while the provider ran is not overwritten.
    session = get_session(session_id) or session
    entry = FORECAST_SERVICE.record(session_id, session, req, result)
    save_session(session_id, session)
    return ForecastResponse(forecast=build_forecast_view(session.current), entry=entry)


@router.get("/session/{session_id}/forecast", response_model=CurrentForecastView)
def current_forecast(session_id: str):
    """Return the result on screen and whether a forecast is outstanding."""
    session = _load_session(session_id)
    return build_current_view(session, loading=FORECAST_SERVICE.is_in_flight(session_id))


@router.get("/session/{session_id}/history", response_model=HistoryView)
def history(session_id: str, order: SortOrder = SortOrder.NEWEST):
    """Return the session history in the requested display order."""
    session = _load_session(session_id)
    return build_history_view(session, order)


@router.delete("/session/{session_id}/history", response_model=ClearResponse)
def clear_history(session_id: str):
    """Remove every history entry for the session."""
    session = _load_session(session_id)
    removed = len(session.history)
    session.clear_history()
    save_session(session_id, session)
    logger.info("Cleared history", extra={"session_id": session_id, "removed": removed})
    return ClearResponse(cleared=removed)


@router.get("/session/{session_id}/history/export")
def export_history(session_id: str):
    """Download the history (stored order) as CSV."""
    session = _load_session(session_id)
    try:
        content = export_csv(session.history.entries)
    except ExportRefused as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    filename = export_filename(prefix=settings.export_filename_prefix)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/session/{session_id}/dashboard", response_model=DashboardView)
def dashboard(session_id: str):
    """Return ledger aggregates alongside the static analytics panels."""
    session = _load_session(session_id)
    return build_dashboard_view(session)
