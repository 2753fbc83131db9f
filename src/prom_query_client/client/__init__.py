"""Prometheus HTTP API client, its records, errors and configuration."""

from .config import (
    DEFAULT_CONFIG_PATH,
    ClientConfig,
    PrometheusSettings,
    QueryDefaults,
    load_config,
    parse_duration,
)
from .errors import (
    ApiError,
    GenericDispatchError,
    HttpStatusError,
    ServerReportedError,
    TransportFormatError,
)
from .models import QuerySpec, RangeSpec, ResultItem
from .prometheus_client import QueryClient

__all__ = [
    "ApiError",
    "ClientConfig",
    "DEFAULT_CONFIG_PATH",
    "GenericDispatchError",
    "HttpStatusError",
    "PrometheusSettings",
    "QueryClient",
    "QueryDefaults",
    "QuerySpec",
    "RangeSpec",
    "ResultItem",
    "ServerReportedError",
    "TransportFormatError",
    "load_config",
    "parse_duration",
]
