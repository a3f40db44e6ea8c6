from __future__ import annotations

from functools import lru_cache
from typing import ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .shard import constants as C


class Settings(BaseSettings):
    """Process configuration, read once from the environment at startup."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(env_nested_delimiter="__", frozen=True)

    openrouter_api_key: str = Field(min_length=1, description="API key for OpenRouter (required)")
    nano_banana_model_id: str = Field(default=C.DEFAULT_MODEL_ID, min_length=1, description="OpenRouter model id used for every request")
    log_level: str = Field(default="INFO", description="Minimum level for diagnostics written to stderr")

    @property
    def model_id(self) -> str:
        return self.nano_banana_model_id


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
