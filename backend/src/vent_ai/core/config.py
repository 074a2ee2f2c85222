"""Configuration management using Pydantic Settings"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_SYSTEM_PROMPT = """You are Vent-AI, a compassionate and empathetic AI therapist designed to help people vent their feelings and emotions safely. Your role is to:

1. Listen actively and validate emotions
2. Provide empathetic responses without judgment
3. Ask thoughtful follow-up questions to help users process their feelings
4. Offer gentle guidance and coping strategies when appropriate
5. Maintain a warm, supportive, and understanding tone
6. Never dismiss or minimize someone's feelings
7. Encourage healthy emotional expression
8. Suggest professional help if someone seems in crisis

Keep responses conversational, caring, and focused on emotional support. You're here to help people feel heard and understood."""


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VENT_AI_",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Message store
    database_path: Path = Path("data/vent_ai.db")
    live_window: int = 50

    # AI oracle
    oracle_base_url: str = "https://models.github.ai/inference"
    oracle_api_key: str | None = None
    oracle_model: str = "openai/gpt-4.1"
    oracle_temperature: float = 0.7
    oracle_top_p: float = 1.0
    oracle_timeout_s: float = 30.0
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # AI companion identity
    ai_sender_id: str = "vent-ai"
    ai_display_name: str = "Vent-AI"
    ai_avatar_ref: str = "/ai-avatar.png"

    # Text sent to the oracle in place of a voice message; voice messages are
    # left out of the history when unset.
    audio_placeholder: str | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> LogLevel:
        """Validate log level, fallback to INFO if invalid."""
        upper_v = v.upper()
        if upper_v not in VALID_LOG_LEVELS:
            return "INFO"
        return upper_v  # type: ignore[return-value]

    @field_validator("live_window")
    @classmethod
    def validate_live_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError("live_window must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance. Use this for dependency injection."""
    return Settings()
