"""
Application settings from environment variables.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # LLM
    anthropic_api_key: str = ""
    companion_model: str = "claude-3-haiku-20240307"
    companion_max_tokens: int = 350
    companion_temperature: float = 0.3
    llm_timeout_seconds: float = 30.0

    # Emotional state store
    state_history_limit: int = 50
    state_idle_ttl_seconds: int = 6 * 60 * 60
    state_eviction_interval_seconds: int = 10 * 60

    # External data sources
    aviation_weather_base_url: str = "https://aviationweather.gov/api/data"
    opensky_base_url: str = "https://opensky-network.org/api"
    http_timeout_seconds: float = 10.0
    http_user_agent: str = "Flight-Companion/1.0"

    # CORS
    cors_origins: list[str] = ["*"]


settings = Settings()
