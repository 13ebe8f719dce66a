"""
Settings for the trip assistant, read from the environment or a .env file.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional


# Default OpenAI-compatible endpoint per provider; LLM_BASE_URL overrides it
PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "mistral": "https://api.mistral.ai/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "ollama": "http://localhost:11434/v1",
}


class Settings(BaseSettings):
    """Environment-driven configuration."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Text generation
    llm_provider: Literal["openai", "mistral", "openrouter", "ollama", "mock"] = "mock"
    llm_api_key: str = "ollama"  # Ollama ignores the key
    llm_base_url: str = ""
    llm_model: str = "mistral"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000
    llm_timeout_seconds: Optional[float] = 30.0

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    log_level: str = "INFO"

    # Session retention (None keeps everything for the process lifetime)
    session_ttl_seconds: Optional[float] = None
    max_sessions: Optional[int] = None

    # Location lookups
    location_provider: Literal["none", "osm"] = "none"
    osm_user_agent: str = "TripMind/1.0"


settings = Settings()


def get_llm_config() -> dict:
    """Connection parameters for the configured provider."""
    return {
        "api_key": settings.llm_api_key,
        "base_url": settings.llm_base_url or PROVIDER_BASE_URLS.get(settings.llm_provider, PROVIDER_BASE_URLS["openai"]),
        "model": settings.llm_model,
        "temperature": settings.llm_temperature,
        "max_tokens": settings.llm_max_tokens,
        "timeout": settings.llm_timeout_seconds,
    }
