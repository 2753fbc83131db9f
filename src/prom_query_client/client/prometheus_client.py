"""HTTP client for the Prometheus query and metadata API."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, NoReturn, cast
from urllib.parse import quote

import httpx

from ..logging import get_logger
from ..settings import Settings, get_settings
from .config import ClientConfig
from .errors import (
    ApiError,
    GenericDispatchError,
    HttpStatusError,
    ServerReportedError,
    TransportFormatError,
)
from .models import (
    DEFAULT_STEP,
    QuerySpec,
    RangeSpec,
    ResultItem,
    Timestamp,
    now,
    time_window,
)

LOGGER = get_logger(__name__)

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}

QueryInput = str | Mapping[str, Any] | QuerySpec
RangeInput = str | Mapping[str, Any] | RangeSpec


class QueryClient:
    """Thin wrapper around the Prometheus HTTP API.

    Batched calls (:meth:`queries`, :meth:`queries_range`) fan out over a thread
    pool sharing one ``httpx.Client`` and return one result group per input, in
    input order. The first failing request aborts the whole batch.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        *,
        max_workers: int = 8,
        client: httpx.Client | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be positive")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._max_workers = max_workers
        self._client = client or httpx.Client(
            base_url=self._base_url,
            timeout=timeout_seconds,
            headers=FORM_HEADERS,
        )
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "QueryClient":
        prometheus = config.prometheus
        return cls(
            prometheus.base_url,
            prometheus.timeout_seconds,
            max_workers=prometheus.max_workers,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "QueryClient":
        settings = settings or get_settings()
        return cls(
            settings.base_url,
            settings.timeout_seconds,
            max_workers=settings.max_workers,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    # Expression queries

    def query(self, query: QueryInput, time: Timestamp | None = None) -> list[ResultItem]:
        """Evaluate an instant query at ``time`` (defaults to now)."""

        return self.queries([query], time=time)[0]

    def queries(
        self, queries: Sequence[QueryInput], time: Timestamp | None = None
    ) -> list[list[ResultItem]]:
        """Evaluate several instant queries concurrently.

        Items are bare expressions, ``{"query": ..., "labels": {...}}`` mappings
        or :class:`QuerySpec` instances; labels are merged into the form body.
        Queries without their own time share one evaluation instant.
        """

        at = time if time is not None else now()
        specs = [QuerySpec.coerce(item, time=at) for item in queries]
        return self._fetch_results("/api/v1/query", [spec.to_params() for spec in specs])

    def query_range(
        self,
        query: RangeInput,
        start: Timestamp | None = None,
        end: Timestamp | None = None,
        step: str | int | float = DEFAULT_STEP,
    ) -> list[ResultItem]:
        """Evaluate ``query`` over a window that defaults to the last 24 hours."""

        return self.queries_range([query], start=start, end=end, step=step)[0]

    def queries_range(
        self,
        queries: Sequence[RangeInput],
        start: Timestamp | None = None,
        end: Timestamp | None = None,
        step: str | int | float = DEFAULT_STEP,
    ) -> list[list[ResultItem]]:
        """Range counterpart of :meth:`queries`."""

        window = time_window(start, end)
        specs = [RangeSpec.coerce(item, step=step, **window) for item in queries]
        return self._fetch_results(
            "/api/v1/query_range", [spec.to_params() for spec in specs]
        )

    # Metadata

    def labels(
        self, start: Timestamp | None = None, end: Timestamp | None = None
    ) -> dict[str, Any]:
        """Label names seen in the window (default: last 24 hours)."""

        return self._request("POST", "/api/v1/labels", time_window(start, end))

    def label_values(
        self,
        label_name: str,
        start: Timestamp | None = None,
        end: Timestamp | None = None,
        match: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """Values of ``label_name``, optionally restricted by series selectors."""

        params: dict[str, Any] = {**time_window(start, end), "match[]": list(match or [])}
        path = f"/api/v1/label/{quote(label_name, safe='')}/values"
        return self._request("GET", path, params)

    def targets(self, state: str | None = None) -> dict[str, Any]:
        """Target discovery overview, filtered by ``state`` (active, dropped, any)."""

        params = {"state": state} if state else {}
        return self._request("POST", "/api/v1/targets", params)

    def rules(self) -> dict[str, Any]:
        """Loaded alerting and recording rules."""

        return self._request("POST", "/api/v1/rules", {})

    def alerts(self) -> dict[str, Any]:
        """Active alerts."""

        return self._request("POST", "/api/v1/alerts", {})

    def alertmanagers(self) -> dict[str, Any]:
        return self._request("POST", "/api/v1/alertmanagers", {})

    # Plumbing

    def _fetch_results(
        self, path: str, requests: list[dict[str, Any]]
    ) -> list[list[ResultItem]]:
        if len(requests) <= 1:
            return [self._fetch_result(path, params) for params in requests]

        LOGGER.debug("Dispatching %s concurrent requests to %s", len(requests), path)
        results: list[list[ResultItem] | None] = [None] * len(requests)
        workers = min(self._max_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._fetch_result, path, params): index
                for index, params in enumerate(requests)
            }
            try:
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            except Exception:
                for future in futures:
                    future.cancel()
                raise
        return cast(list[list[ResultItem]], results)

    def _fetch_result(self, path: str, params: dict[str, Any]) -> list[ResultItem]:
        payload = self._request("POST", path, params)
        data = payload.get("data")
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            self._fail(
                TransportFormatError(
                    "Client return response without data.result: " + json.dumps(payload),
                    url=self._url(path),
                    request=params,
                )
            )
        if data.get("resultType") in ("scalar", "string"):
            # scalar and string results are a bare [time, value] pair
            return [ResultItem(value=result, request=params)]
        return [ResultItem.model_validate({**item, "request": params}) for item in result]

    def _request(self, method: str, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = self._url(path)
        LOGGER.debug("Prometheus request", extra={"path": path, "params": params})
        try:
            if method == "GET":
                response = self._client.get(
                    url, params=params, headers=FORM_HEADERS, timeout=self._timeout
                )
            else:
                response = self._client.post(
                    url, data=params, headers=FORM_HEADERS, timeout=self._timeout
                )
        except httpx.TransportError as exc:
            error = GenericDispatchError(
                f"Error getting response for {json.dumps(params, default=str)}: {exc}",
                url=url,
                request=params,
            )
            LOGGER.warning("%s", error.message)
            raise error from exc
        return self._classify(response, url, params)

    def _classify(
        self, response: httpx.Response, url: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        context = {"url": url, "request": params}
        if isinstance(body, dict) and "errorType" in body and "error" in body:
            self._fail(
                ServerReportedError(
                    str(body["errorType"]),
                    str(body["error"]),
                    status_code=response.status_code,
                    **context,
                )
            )
        if response.status_code >= 400:
            self._fail(HttpStatusError(response.status_code, response.reason_phrase, **context))
        if isinstance(body, str):
            self._fail(
                TransportFormatError(
                    f"Client ({self._base_url}) return unsupported response: {body}",
                    status_code=response.status_code,
                    **context,
                )
            )
        if not isinstance(body, dict):
            self._fail(
                TransportFormatError(
                    "Client return unsupported response: " + json.dumps(body),
                    status_code=response.status_code,
                    **context,
                )
            )
        return cast(dict[str, Any], body)

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    @staticmethod
    def _fail(error: ApiError) -> NoReturn:
        LOGGER.warning("%s", error.message)
        raise error

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "QueryClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["FORM_HEADERS", "QueryClient"]
