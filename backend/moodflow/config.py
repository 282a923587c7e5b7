"""
MoodFlow Configuration
======================
All environment variables in one place. Pydantic Settings validates
types at startup so a bad weather unit or log level fails on boot.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Loaded from environment variables or a .env file."""

    # --- Supabase (key-value state store) ---
    supabase_url: str = "http://localhost:54321"
    supabase_service_key: str = ""
    state_table: str = "app_state"

    # --- Anthropic / Claude API ---
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    # Analysis responses carry several insights with action steps
    anthropic_max_tokens: int = 1500
    anthropic_timeout_seconds: float = 60.0

    # --- OpenWeatherMap ---
    weather_api_key: str = ""
    weather_latitude: float | None = None
    weather_longitude: float | None = None
    temperature_unit: str = "celsius"  # celsius | fahrenheit

    # --- App settings ---
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # --- Feature flags ---
    # Kill switch: if False, analysis requests fail fast with a message
    # instead of calling the Claude API.
    enable_ai_analysis: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def weather_configured(self) -> bool:
        return bool(
            self.weather_api_key
            and self.weather_latitude is not None
            and self.weather_longitude is not None
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
