"""Process-wide configuration read from the environment."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Typed settings leveraging environment variables for overrides."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    base_url: str = Field(
        default="http://localhost:9090",
        description="Prometheus server used when no explicit URL is given.",
    )
    timeout_seconds: PositiveFloat = Field(default=30.0)
    max_workers: PositiveInt = Field(
        default=8,
        description="Upper bound of concurrent requests for batched queries.",
    )

    model_config = {
        "env_file": ".env",
        "env_prefix": "PROMQC_",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Cache Settings to avoid re-parsing env on every lookup."""

    return Settings()
