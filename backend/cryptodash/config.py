"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ASSETS = ["bitcoin", "ethereum", "solana"]

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _split(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseModel):
    """Validated server settings.

    Field aliases are the environment variable names, so validation errors
    name the variable that holds the bad value.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3001, ge=1, le=65535, validation_alias="PORT")
    poll_interval: float = Field(default=10.0, gt=0, validation_alias="POLL_INTERVAL_SECONDS")
    request_timeout: float = Field(default=5.0, gt=0, validation_alias="REQUEST_TIMEOUT_SECONDS")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], validation_alias="CORS_ORIGINS")
    provider: str = Field(default="coingecko", validation_alias="PRICE_PROVIDER")
    api_url: str | None = Field(default=None, validation_alias="PRICE_API_URL")
    api_key: str | None = Field(default=None, validation_alias="PRICE_API_KEY")
    assets: list[str] = Field(default_factory=lambda: list(DEFAULT_ASSETS), validation_alias="TRACKED_ASSETS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        return _split(value) or ["*"]

    @field_validator("assets", mode="before")
    @classmethod
    def _split_assets(cls, value: Any) -> Any:
        return _split(value) or list(DEFAULT_ASSETS)

    @field_validator("assets")
    @classmethod
    def _unique_assets(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError(f"contains duplicates: {value}")
        return value

    @field_validator("provider")
    @classmethod
    def _lower_provider(cls, value: str) -> str:
        return value.lower()

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from the environment.

        Raises pydantic.ValidationError (a ValueError) on bad input. Blank
        variables count as unset.

        - PORT, HOST                     listening address
        - POLL_INTERVAL_SECONDS          seconds between poll cycles
        - REQUEST_TIMEOUT_SECONDS        upstream HTTP timeout
        - CORS_ORIGINS                   comma-separated allowed origins
        - PRICE_PROVIDER                 coingecko | coincap
        - PRICE_API_URL, PRICE_API_KEY   endpoint override and optional key
        - TRACKED_ASSETS                 comma-separated asset ids
        - LOG_LEVEL
        """
        env = os.environ if env is None else env
        names = [field.validation_alias for field in cls.model_fields.values()]
        return cls.model_validate({name: env[name] for name in names if env.get(name, "").strip()})
