"""CLI entrypoint for the suburb data ingestion pipeline."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from suburb_ingest.common.config_loader import IngestConfig, load_config
from suburb_ingest.common.constants import (
    EXIT_HARD_FAIL,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    PROPERTY_TYPES,
    RUNNERS,
)
from suburb_ingest.common.errors import IngestError
from suburb_ingest.common.fs import read_text, write_json, write_text
from suburb_ingest.common.ids import generate_request_id
from suburb_ingest.common.logging import build_logger, log_event
from suburb_ingest.common.memo import InMemoryStore
from suburb_ingest.fetch.http import HttpClient
from suburb_ingest.fetch.sanitize import sanitize_json_text
from suburb_ingest.fetch.upstream import UpstreamClient
from suburb_ingest.pipeline import runner
from suburb_ingest.pipeline.runner import RunnerResponse


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*RUNNERS, "sanitize"])
    parser.add_argument("--suburb", default=None)
    parser.add_argument("--property-type", default=None, choices=PROPERTY_TYPES)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--input", default=None, help="raw payload file for the sanitize command")
    parser.add_argument("--out", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--request-id", default=None)
    return parser.parse_args(argv)


def execute_runner(args: argparse.Namespace, config: IngestConfig, upstream: UpstreamClient, logger) -> RunnerResponse:
    command = args.command
    if command == "amenities":
        return runner.run_amenities(upstream, config, args.suburb, logger=logger)
    if command == "schools":
        return runner.run_schools(upstream, config, args.suburb, logger=logger)
    if command == "located-schools":
        return runner.run_located_schools(upstream, config, args.suburb, logger=logger)
    if command == "properties":
        return runner.run_properties(
            upstream, config, args.suburb, property_type=args.property_type, logger=logger
        )
    if command == "centroid":
        store = InMemoryStore(max_entries=config.memo_max_entries)
        return runner.run_centroid(upstream, config, args.suburb, store, logger=logger)
    if command == "similar":
        return runner.run_similar(upstream, config, args.suburb, logger=logger)
    if command in ("market", "risk", "summary"):
        return runner.run_passthrough(
            command, upstream, config, args.suburb, property_type=args.property_type, logger=logger
        )
    raise ValueError(f"Unknown command: {command}")


def _emit(body, out: str | None) -> None:
    if out:
        write_json(Path(out), body)
    else:
        sys.stdout.write(json.dumps(body, ensure_ascii=False, indent=2, sort_keys=True) + "\n")


def run_sanitize(args: argparse.Namespace) -> int:
    if not args.input:
        raise IngestError("sanitize requires --input")
    sanitized = sanitize_json_text(read_text(Path(args.input)))
    if args.out:
        write_text(Path(args.out), sanitized)
    else:
        sys.stdout.write(sanitized)
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace, http_client: HttpClient | None = None) -> int:
    if args.command == "sanitize":
        return run_sanitize(args)

    request_id = args.request_id or generate_request_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(request_id, log_dir=log_dir, level=args.log_level)

    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    config = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)

    client = http_client or HttpClient(
        token=config.token,
        timeout_ms=config.timeout_ms,
        snippet_limit=config.snippet_limit,
        logger=logger,
    )
    upstream = UpstreamClient(config, client)
    try:
        log_event(logger, "request start", request_id=request_id, stage=args.command, event="REQUEST_START")
        response = execute_runner(args, config, upstream, logger)
    finally:
        if http_client is None:
            upstream.close()

    _emit(response.body, args.out)
    log_event(
        logger,
        "request end",
        request_id=request_id,
        stage=args.command,
        event="REQUEST_END",
        status=response.status,
    )
    if response.status >= 400:
        return EXIT_HARD_FAIL
    if response.degraded:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except IngestError as exc:
        sys.stderr.write(f"{exc.error_code}: {exc}\n")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
