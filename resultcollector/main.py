"""Composition root for the result collector.

This module is the only place that imports both the core aggregator and
concrete adapter implementations. Tool integrations call
``create_aggregator`` to get a wired ResultAggregator.

It also provides the ``result-collector`` command, which replays a
JSON-lines event log through the aggregator and writes the report:

    {"event": "start", "test": {"fullName": "suite test", "browserId": "chrome"}}
    {"event": "success", "test": {"fullName": "suite test", "browserId": "chrome"}}
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from resultcollector.adapters.storage.json_file import JsonFileReportStorage
from resultcollector.adapters.tool.passthrough import PassthroughToolAdapter
from resultcollector.config import Settings, load_settings
from resultcollector.core.aggregator import ReportConfig, ResultAggregator
from resultcollector.core.ports import ReportStoragePort, ToolAdapterPort

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PERSIST_FAILED = 1
EXIT_BAD_INPUT = 2


LOGGER_NAMESPACE = "resultcollector"

TEXT_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
JSON_LOG_FORMAT = (
    '{"time": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def configure_logging(log_level: str, log_format: str) -> logging.Logger:
    """Route the collector's log records to stdout.

    Only the ``resultcollector`` logger hierarchy is configured, so a test
    tool embedding the collector keeps control of the root logger. Calling
    this again replaces the handler instead of adding a second one.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(JSON_LOG_FORMAT if log_format == "json" else TEXT_LOG_FORMAT)
    )
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.propagate = False
    return package_logger


def create_aggregator(
    tool_adapter: ToolAdapterPort,
    settings: ReportConfig | None = None,
    storage: ReportStoragePort | None = None,
    clock: Callable[[], float] = time.time,
) -> ResultAggregator:
    """Wire a ResultAggregator for a tool integration.

    Args:
        tool_adapter: ToolAdapterPort implementation for the test tool.
        settings: Anything with a ``path``. Loaded from the environment
            when omitted.
        storage: ReportStoragePort implementation. Defaults to atomic
            JSON file storage.
        clock: Time source in seconds.

    Returns:
        An aggregator with an empty record store.
    """
    if settings is None:
        settings = load_settings()
    if storage is None:
        storage = JsonFileReportStorage()
    return ResultAggregator.create(tool_adapter, settings, storage, clock=clock)


def replay_events(aggregator: ResultAggregator, lines: Iterable[str]) -> int:
    """Feed JSON-lines events into the aggregator.

    Blank lines are ignored. Malformed lines and unknown event kinds are
    logged and skipped.

    Returns:
        Number of events applied.
    """
    handlers = {
        "start": aggregator.mark_start,
        "success": aggregator.add_success,
        "fail": aggregator.add_fail,
        "skipped": aggregator.add_skipped,
        "retry": aggregator.add_retry,
        "error": aggregator.add_error,
    }
    applied = 0

    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line:
            continue

        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping malformed event on line {lineno}: {e}")
            continue

        if not isinstance(entry, dict):
            logger.warning(f"Skipping non-object event on line {lineno}")
            continue

        kind = entry.get("event")
        handler = handlers.get(kind) if isinstance(kind, str) else None
        test = entry.get("test", {})
        if handler is None or not isinstance(test, dict):
            logger.warning(f"Skipping unknown event {kind!r} on line {lineno}")
            continue

        handler(test)
        applied += 1

    return applied


async def run_replay(events_file: Path, settings: Settings) -> int:
    """Replay an event log and persist the resulting report.

    Returns:
        Process exit code.
    """
    aggregator = create_aggregator(
        PassthroughToolAdapter(browser_id=settings.browser_id), settings
    )

    try:
        with events_file.open(encoding="utf-8") as f:
            applied = replay_events(aggregator, f)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read events file {events_file}: {e}")
        return EXIT_BAD_INPUT

    logger.info(f"Replayed {applied} events from {events_file}")

    if not await aggregator.persist():
        return EXIT_PERSIST_FAILED
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="result-collector",
        description="Aggregate a JSON-lines log of test events into a JSON report.",
    )
    parser.add_argument("events", type=Path, help="JSON-lines file of test events")
    parser.add_argument("--path", help="Report destination (overrides RESULT_COLLECTOR_PATH)")
    parser.add_argument("--browser-id", help="Default browserId for events without one")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Application entry point.

    Exit codes:
        0: Report written
        1: Report could not be written
        2: Invalid arguments, configuration or events file
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.path:
        overrides["path"] = args.path
    if args.browser_id:
        overrides["browser_id"] = args.browser_id

    try:
        settings = load_settings(**overrides)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(EXIT_BAD_INPUT)

    configure_logging(settings.log_level, settings.log_format)

    try:
        sys.exit(asyncio.run(run_replay(args.events, settings)))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (SIGINT)")
        sys.exit(130)


if __name__ == "__main__":
    main()
