"""Client library for the Prometheus HTTP API."""

from importlib import metadata

from .client import ApiError, QueryClient


__all__ = ["ApiError", "QueryClient", "__version__"]


try:
    __version__ = metadata.version("prom-query-client")
except metadata.PackageNotFoundError:  # pragma: no cover - during local dev without install
    __version__ = "0.1.0"
