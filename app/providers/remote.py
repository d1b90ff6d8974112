"""Thin client for a remote demand-forecast inference endpoint."""

from __future__ import annotations

import asyncio
import time

import requests
from pydantic import ValidationError

from app.domain import ForecastRequest, ForecastResult
from app.errors import EngineFailure
from app.forecast_engine import round_half_up
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="providers/remote")


class RemoteForecastProvider:
    """POSTs the request JSON to ``url`` and parses ``{prediction, confidence}``."""

    name = "remote"

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 10.0,
        retries: int = 0,
        retry_backoff_sec: float = 0.5,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, retries)
        self.retry_backoff_sec = retry_backoff_sec

    async def predict(self, request: ForecastRequest) -> ForecastResult:
        # requests is blocking; keep the event loop free while waiting.
        return await asyncio.to_thread(self.predict_sync, request)

    def predict_sync(self, request: ForecastRequest) -> ForecastResult:
        """Blocking variant of ``predict``; raises ``EngineFailure`` on any failure."""
        payload = request.model_dump(by_alias=True)

        r = None
        for attempt in range(self.max_retries + 1):
            try:
                logger.debug("Forecast POST payload: %s", payload)
                r = requests.post(self.url, json=payload, timeout=self.timeout_seconds)
                logger.info(
                    "Forecast POST took %.2fs, status %s",
                    r.elapsed.total_seconds(),
                    r.status_code,
                )
            except requests.exceptions.RequestException as exc:
                logger.warning(
                    "Forecast POST to %s failed on attempt %d: %s",
                    mask_url(self.url),
                    attempt + 1,
                    exc,
                )
                if attempt < self.max_retries:
                    time.sleep(self.retry_backoff_sec)
                    continue
                raise EngineFailure(f"Forecast backend unreachable: {exc}") from exc

            if r.status_code == 200:
                break

            if r.status_code >= 500 and attempt < self.max_retries:
                logger.warning(
                    "Forecast backend returned %s; retrying (attempt %d/%d).",
                    r.status_code,
                    attempt + 1,
                    self.max_retries + 1,
                )
                time.sleep(self.retry_backoff_sec)
                continue
            raise EngineFailure(
                f"Forecast backend returned status {r.status_code}: {(r.text or '')[:200]}"
            )

        try:
            return ForecastResult.model_validate(_round_scores(r.json()))
        except (ValueError, OverflowError, ValidationError) as exc:
            raise EngineFailure(f"Forecast backend returned an invalid payload: {(r.text or '')[:200]}") from exc


def _round_scores(payload):
    """Backends may answer with fractional scores; results carry whole numbers."""
    if not isinstance(payload, dict):
        return payload
    rounded = dict(payload)
    for key in ("prediction", "confidence"):
        value = rounded.get(key)
        if isinstance(value, float):
            rounded[key] = round_half_up(value)
    return rounded
