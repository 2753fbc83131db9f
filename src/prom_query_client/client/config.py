"""YAML configuration for the query client and duration helpers."""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, PositiveFloat, PositiveInt, field_validator

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")

_UNITS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "y": 31536000,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d|w|y)")


class PrometheusSettings(BaseModel):
    base_url: str = Field(default="http://localhost:9090")
    timeout_seconds: PositiveFloat = Field(default=30.0)
    max_workers: PositiveInt = Field(default=8)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class QueryDefaults(BaseModel):
    """Defaults applied by the CLI to range queries."""

    step: str = Field(default="1m", description="Prometheus query step, e.g. 30s.")
    lookback_hours: PositiveInt = Field(default=24)

    @field_validator("step")
    @classmethod
    def _check_step(cls, value: str) -> str:
        parse_duration(value)
        return value

    @property
    def lookback_delta(self) -> timedelta:
        return timedelta(hours=self.lookback_hours)


class ClientConfig(BaseModel):
    prometheus: PrometheusSettings = Field(default_factory=PrometheusSettings)
    defaults: QueryDefaults = Field(default_factory=QueryDefaults)


def parse_duration(value: str | float | int) -> timedelta:
    """Parse Prometheus durations like `30s`, `5m`, `1h30m` or bare seconds."""

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip().lower()
        if not text:
            raise ValueError("Duration cannot be empty")
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_units(text)
    if seconds <= 0:
        raise ValueError("Duration must be positive")
    return timedelta(seconds=seconds)


def _parse_units(text: str) -> float:
    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"Unsupported duration: {text}")
    return seconds


def load_config(path: Path | None = None) -> ClientConfig:
    """Load YAML config into a ClientConfig instance."""

    config_path = path or DEFAULT_CONFIG_PATH
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if data is None:
        raise ValueError(f"Client config is empty: {config_path}")
    return ClientConfig.model_validate(data)


__all__ = [
    "ClientConfig",
    "DEFAULT_CONFIG_PATH",
    "PrometheusSettings",
    "QueryDefaults",
    "load_config",
    "parse_duration",
]
