"""CLI to run queries and metadata lookups against a Prometheus server."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable

from ..logging import configure_logging, get_logger, log_structured
from ..settings import get_settings
from .config import load_config, parse_duration
from .errors import ApiError
from .models import DEFAULT_STEP, now
from .prometheus_client import QueryClient

LOGGER = get_logger(__name__)


def _timestamp(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected epoch seconds, got {value!r}") from None


def _step(value: str) -> str:
    try:
        parse_duration(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a duration like 30s, got {value!r}") from None
    return value


def _add_window(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", type=_timestamp, default=None, help="Epoch seconds.")
    parser.add_argument("--end", type=_timestamp, default=None, help="Epoch seconds.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="promq", description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to client YAML config (defaults to environment settings).",
    )
    parser.add_argument("--base-url", type=str, default=None, help="Prometheus base URL.")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout.")
    parser.add_argument("--log-level", type=str, default=None, help="Override log level.")

    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="Instant query (several run concurrently).")
    query.add_argument("queries", nargs="+", metavar="QUERY")
    query.add_argument("--time", type=_timestamp, default=None, help="Epoch seconds.")

    query_range = commands.add_parser("query-range", help="Range query.")
    query_range.add_argument("queries", nargs="+", metavar="QUERY")
    _add_window(query_range)
    query_range.add_argument("--step", type=_step, default=None, help="Resolution, e.g. 30s.")

    labels = commands.add_parser("labels", help="List label names.")
    _add_window(labels)

    label_values = commands.add_parser("label-values", help="List values of one label.")
    label_values.add_argument("label")
    _add_window(label_values)
    label_values.add_argument(
        "--match", action="append", default=[], help="Series selector, repeatable."
    )

    targets = commands.add_parser("targets", help="Target discovery overview.")
    targets.add_argument("--state", type=str, default=None)

    for name in ("rules", "alerts", "alertmanagers"):
        commands.add_parser(name, help=f"Show {name}.")
    return parser


def _build_client(args: argparse.Namespace) -> tuple[QueryClient, dict[str, Any]]:
    """Resolve connection settings: flags, then YAML config, then environment."""

    updates = {
        key: value
        for key, value in (("base_url", args.base_url), ("timeout_seconds", args.timeout))
        if value is not None
    }
    if args.config is None:
        settings = get_settings().model_copy(update=updates)
        return QueryClient.from_settings(settings), {}

    config = load_config(args.config)
    config.prometheus = config.prometheus.model_copy(update=updates)
    range_defaults = {
        "step": config.defaults.step,
        "lookback": config.defaults.lookback_delta.total_seconds(),
    }
    return QueryClient.from_config(config), range_defaults


def _run_range(client: QueryClient, args: argparse.Namespace, defaults: dict[str, Any]) -> Any:
    step = args.step or defaults.get("step", DEFAULT_STEP)
    start, end = args.start, args.end
    if start is None and "lookback" in defaults:
        end = end if end is not None else now()
        start = end - defaults["lookback"]
    return client.queries_range(args.queries, start=start, end=end, step=step)


def _dispatch(client: QueryClient, args: argparse.Namespace, defaults: dict[str, Any]) -> Any:
    handlers: dict[str, Callable[[], Any]] = {
        "query": lambda: client.queries(args.queries, time=args.time),
        "query-range": lambda: _run_range(client, args, defaults),
        "labels": lambda: client.labels(start=args.start, end=args.end),
        "label-values": lambda: client.label_values(
            args.label, start=args.start, end=args.end, match=args.match
        ),
        "targets": lambda: client.targets(args.state),
        "rules": client.rules,
        "alerts": client.alerts,
        "alertmanagers": client.alertmanagers,
    }
    return handlers[args.command]()


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, list):
        return [_to_jsonable(item) for item in result]
    if hasattr(result, "model_dump"):
        return result.model_dump(exclude_none=True)
    return result


def main(argv: list[str] | None = None, client: QueryClient | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level:
        configure_logging(args.log_level.upper())
    defaults: dict[str, Any] = {}
    if client is None:
        client, defaults = _build_client(args)
    try:
        result = _dispatch(client, args, defaults)
    except (ApiError, ValueError) as exc:
        print(f"promq: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()

    json.dump(_to_jsonable(result), sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    log_structured(LOGGER, "promq finished", command=args.command, base_url=client.base_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
