"""FastAPI application setup for PedalCast."""

from fastapi import FastAPI

from . import api
from .api import router as api_router

app = FastAPI(title="PedalCast")


@app.get("/health")
def health():
    """Liveness probe; reports which forecast provider is active."""
    return {"status": "ok", "provider": api.FORECAST_SERVICE.provider.name}


# API routes
app.include_router(api_router, prefix="/v1")
