"""Tests for the promq command line front end."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from prom_query_client.client.cli import _build_client, build_parser, main
from prom_query_client.client.prometheus_client import QueryClient

BASE_URL = "http://prometheus:9090"


def _build_client_for(
    handler: Callable[[httpx.Request], httpx.Response],
) -> QueryClient:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return QueryClient(BASE_URL, client=client)


def test_query_command_prints_results(capsys: pytest.CaptureFixture[str]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        query = parse_qs(request.content.decode("utf-8"))["query"][0]
        payload = {
            "status": "success",
            "data": {"resultType": "vector", "result": [{"metric": {"q": query}, "value": [1, "2"]}]},
        }
        return httpx.Response(200, json=payload)

    exit_code = main(["query", "up", "node_load1", "--time", "1700000000"], _build_client_for(handler))

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert [group[0]["metric"]["q"] for group in output] == ["up", "node_load1"]
    assert output[0][0]["request"] == {"query": "up", "time": 1700000000.0}


def test_label_values_command_passes_matchers(capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "success", "data": ["api"]})

    exit_code = main(
        ["label-values", "job", "--match", "up", "--match", "node_load1"],
        _build_client_for(handler),
    )

    assert exit_code == 0
    assert seen[0].url.path == "/api/v1/label/job/values"
    assert seen[0].url.params.get_list("match[]") == ["up", "node_load1"]
    assert json.loads(capsys.readouterr().out)["data"] == ["api"]


def test_targets_command_sends_state(capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "success", "data": {}})

    assert main(["targets", "--state", "active"], _build_client_for(handler)) == 0
    assert parse_qs(seen[0].content.decode("utf-8")) == {"state": ["active"]}


def test_api_error_exits_with_status_one(capsys: pytest.CaptureFixture[str]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    exit_code = main(["alerts"], _build_client_for(handler))

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert "502" in captured.err


def test_config_file_supplies_connection_and_range_defaults(tmp_path: Path) -> None:
    config_yaml = tmp_path / "promq.yaml"
    config_yaml.write_text(
        "prometheus:\n  base_url: http://vm:8428\n  timeout_seconds: 3\n"
        "defaults:\n  step: 30s\n  lookback_hours: 2\n",
        encoding="utf-8",
    )
    args = build_parser().parse_args(
        ["--config", str(config_yaml), "--timeout", "9", "query-range", "up"]
    )

    client, defaults = _build_client(args)
    try:
        assert client.base_url == "http://vm:8428"
        assert client.timeout_seconds == 9
        assert defaults == {"step": "30s", "lookback": 7200.0}
    finally:
        client.close()


def test_base_url_flag_overrides_environment() -> None:
    args = build_parser().parse_args(["--base-url", "http://other:9090", "rules"])

    client, defaults = _build_client(args)
    try:
        assert client.base_url == "http://other:9090"
        assert defaults == {}
    finally:
        client.close()


def _range_handler(seen: list[httpx.Request]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        payload = {"status": "success", "data": {"resultType": "matrix", "result": []}}
        return httpx.Response(200, json=payload)

    return handler


def test_query_range_rejects_unknown_step(capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[httpx.Request] = []

    with pytest.raises(SystemExit) as exc_info:
        main(["query-range", "up", "--step", "10x"], _build_client_for(_range_handler(seen)))

    assert exc_info.value.code == 2
    assert "10x" in capsys.readouterr().err
    assert seen == []


def test_query_range_with_only_end(capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[httpx.Request] = []

    exit_code = main(["query-range", "up", "--end", "1000"], _build_client_for(_range_handler(seen)))

    assert exit_code == 0
    params = parse_qs(seen[0].content.decode("utf-8"))
    assert params["end"] == ["1000.0"]
    assert params["start"] == [str(1000.0 - 86400)]


def test_inverted_window_exits_with_status_one(capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[httpx.Request] = []

    exit_code = main(
        ["query-range", "up", "--start", "2000", "--end", "1000"],
        _build_client_for(_range_handler(seen)),
    )

    assert exit_code == 1
    assert "start must not be after end" in capsys.readouterr().err
    assert seen == []
