"""Factory helpers for choosing a forecast provider at startup."""

from __future__ import annotations

import random

from app import config
from app.providers.base import ForecastProvider
from app.providers.mock import HeuristicForecastProvider
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="providers/factory")


DEFAULT_PROVIDER_NAME = "mock"


def build_forecast_provider(settings: config.Settings | None = None) -> ForecastProvider:
    """Instantiate the configured forecast provider."""
    settings = settings or config.settings
    name = (settings.forecast_provider or DEFAULT_PROVIDER_NAME).lower()

    if name == "mock":
        seed = getattr(settings, "mock_seed", None)
        logger.info(
            "Using heuristic forecast provider",
            extra={"latency_seconds": settings.mock_latency_seconds, "seeded": seed is not None},
        )
        return HeuristicForecastProvider(
            latency_seconds=settings.mock_latency_seconds,
            rng=random.Random(seed) if seed is not None else None,
        )

    if name == "remote":
        from .remote import RemoteForecastProvider

        url = settings.forecast_api_url
        if not url:
            raise ValueError("forecast_api_url must be set for the remote forecast provider")
        logger.info("Using remote forecast provider", extra={"url": mask_url(url)})
        return RemoteForecastProvider(
            url,
            timeout_seconds=settings.forecast_timeout_seconds,
            retries=settings.forecast_retries,
            retry_backoff_sec=settings.forecast_retry_backoff_sec,
        )

    raise ValueError(f"Unknown forecast provider '{name}'")
