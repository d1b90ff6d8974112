"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="app/config")


class Settings(BaseSettings):
    """Environment-driven configuration for the PedalCast demand forecasting service."""
    model_config = SettingsConfigDict(env_prefix="PEDALCAST_", extra="ignore")

    forecast_provider: str = "mock"  # options: mock, remote
    forecast_api_url: str | None = None
    forecast_timeout_seconds: float = 10.0
    forecast_retries: int = 0
    forecast_retry_backoff_sec: float = 0.5
    mock_latency_seconds: float = 2.0
    mock_seed: int | None = None
    api_key: str | None = None
    api_key_redis_url: str | None = None
    api_key_redis_set: str = "api_keys"
    session_redis_url: str | None = None
    session_ttl_seconds: int = 3600
    export_filename_prefix: str = "bike_predictions"

    @field_validator("forecast_api_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """Normalize the backend URL so logs and requests agree on its form."""
        if v is None:
            return None
        return str(v).rstrip("/")

    @field_validator("mock_latency_seconds", "forecast_timeout_seconds", mode="after")
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
