"""
Stack Games - Application Settings

Loads configuration from environment variables (prefixed STACK_GAMES_) and an
optional .env file using Pydantic Settings.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings

from src.engine.rulesets import DEFAULT_VARIANT_ID, is_variant_id


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Gameplay
    default_variant: str = DEFAULT_VARIANT_ID
    draw_by_threefold: bool | None = None
    stop_capture_on_promotion: bool | None = None

    # Display
    coord_format: Literal["a1", "rc"] = "a1"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "STACK_GAMES_",
        "extra": "ignore",
    }

    @field_validator("default_variant")
    @classmethod
    def _known_variant(cls, value: str) -> str:
        if not is_variant_id(value):
            raise ValueError(f"Unknown variant id: {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
