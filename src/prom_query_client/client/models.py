"""Typed request and result records exchanged with the Prometheus API."""

from __future__ import annotations

import time as _time
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Self, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import parse_duration

Timestamp = Union[int, float, datetime]

DEFAULT_STEP = "1m"
DEFAULT_LOOKBACK_SECONDS = 60 * 60 * 24


def now() -> int:
    """Current wall-clock time in whole epoch seconds."""

    return int(_time.time())


def to_timestamp(value: Timestamp) -> int | float:
    """Convert ``value`` to Unix epoch seconds; naive datetimes are taken as UTC."""

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.timestamp()
    return value


def time_window(start: Timestamp | None, end: Timestamp | None) -> dict[str, int | float]:
    """Resolve an optional window, defaulting to the 24 hours before ``end`` (or now)."""

    resolved_end = to_timestamp(end) if end is not None else now()
    return {
        "start": (
            to_timestamp(start) if start is not None else resolved_end - DEFAULT_LOOKBACK_SECONDS
        ),
        "end": resolved_end,
    }


class _Spec(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1)
    labels: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, value: str | Mapping[str, Any] | _Spec, **defaults: Any) -> Self:
        """Build a spec from a bare query, a ``{query, labels}`` mapping or a spec.

        ``defaults`` fill in whatever ``value`` leaves unset or ``None``.
        """

        if isinstance(value, str):
            fields: dict[str, Any] = {"query": value}
        elif isinstance(value, _Spec):
            fields = value.model_dump(exclude_unset=True, exclude_none=True)
        else:
            fields = {key: item for key, item in value.items() if item is not None}
        base = {key: item for key, item in defaults.items() if item is not None}
        return cls.model_validate({**base, **fields})


class QuerySpec(_Spec):
    """Instant query plus extra form fields to send with it."""

    time: Timestamp | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "query": self.query,
            "time": to_timestamp(self.time) if self.time is not None else now(),
        }
        params.update(self.labels)
        return params


class RangeSpec(_Spec):
    """Range query over ``start``..``end`` evaluated every ``step``."""

    start: Timestamp | None = None
    end: Timestamp | None = None
    step: str | int | float = DEFAULT_STEP

    @field_validator("step")
    @classmethod
    def _check_step(cls, value: str | int | float) -> str | int | float:
        parse_duration(value)
        return value

    @model_validator(mode="after")
    def _check_window(self) -> RangeSpec:
        if self.start is not None and self.end is not None:
            if to_timestamp(self.start) > to_timestamp(self.end):
                raise ValueError("start must not be after end")
        return self

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "query": self.query,
            **time_window(self.start, self.end),
            "step": self.step,
        }
        params.update(self.labels)
        return params


class ResultItem(BaseModel):
    """One series from ``data.result`` tagged with the request that produced it."""

    model_config = ConfigDict(extra="allow")

    metric: dict[str, str] = Field(default_factory=dict)
    value: list[Any] | None = None
    values: list[list[Any]] | None = None
    request: dict[str, Any] | None = None

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None


__all__ = [
    "DEFAULT_LOOKBACK_SECONDS",
    "DEFAULT_STEP",
    "QuerySpec",
    "RangeSpec",
    "ResultItem",
    "Timestamp",
    "now",
    "time_window",
    "to_timestamp",
]
