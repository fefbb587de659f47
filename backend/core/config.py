"""
YieldOps Backend Configuration

Uses pydantic-settings for type-safe environment variable loading.
"""

from datetime import datetime
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "YieldOps"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # Upstream property data (PMS / booking API)
    metrics_api_url: str = "http://localhost:3000/api/os"
    metrics_api_token: str = ""
    upstream_timeout_seconds: float = 5.0
    upstream_retry_attempts: int = 3

    # Fallback policy: synthetic data when the upstream is unavailable
    allow_synthetic_fallback: bool = True
    synthetic_seed: int | None = None

    # ── Yield Engine ─────────────────────────────────────────────────
    dashboard_cache_ttl_hours: float = 2.0
    demand_elasticity: float = -1.2
    overbooking_walk_cost: float = 200.0
    overbooking_average_rate: float = 150.0
    default_strategy_valid_from: datetime = datetime(2024, 1, 1)
    default_strategy_valid_to: datetime = datetime(2025, 12, 31)

    # ── Automation (Celery beat) ─────────────────────────────────────
    redis_url: str = "redis://localhost:6379/0"
    automation_property_ids: str = ""  # comma-separated
    automation_execute_actions: bool = False

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def automation_properties(self) -> list[str]:
        return [pid.strip() for pid in self.automation_property_ids.split(",") if pid.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_runtime_guardrails(settings)
    return settings


def _enforce_runtime_guardrails(settings: Settings) -> None:
    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}
    if is_local:
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
    if not settings.metrics_api_token:
        raise ValueError("Refusing to start without METRICS_API_TOKEN outside local/dev/test")
    if settings.allow_synthetic_fallback:
        raise ValueError("Refusing to serve synthetic metrics outside local/dev/test")
