"""Application configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Simulator settings, read from environment variables or ``.env``."""

    APP_NAME: str = "Workflow Simulator"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, testing, production

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Comma-separated list of frontend origins allowed to call the API
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Per-node latency window for animated runs, in milliseconds
    SIMULATION_MIN_DELAY_MS: int = 500
    SIMULATION_MAX_DELAY_MS: int = 1500
    # Unset means every run draws fresh randomness
    SIMULATION_SEED: Optional[int] = None
    SIMULATION_MAX_NODES: int = 500
    # WebSocket runs animate unless the client says otherwise
    SIMULATION_WS_ANIMATE: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def delay_window(self) -> tuple[int, int]:
        return self.SIMULATION_MIN_DELAY_MS, self.SIMULATION_MAX_DELAY_MS

    def validate_delays(self) -> None:
        """
        Check the simulation delay window at startup.

        Raises:
            RuntimeError: If either bound is negative or min exceeds max
        """
        low, high = self.delay_window
        if low < 0 or high < 0:
            raise RuntimeError(f"Simulation delays must not be negative (got {low}-{high}ms)")
        if low > high:
            raise RuntimeError(
                f"SIMULATION_MIN_DELAY_MS ({low}) must not exceed SIMULATION_MAX_DELAY_MS ({high})"
            )

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Settings singleton; environment is read once per process."""
    return Settings()
