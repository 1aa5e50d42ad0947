"""pytest integration for the result collector.

Enable with ``-p resultcollector.adapters.tool.pytest_plugin`` and either
``--result-report=PATH`` or ``RESULT_COLLECTOR_ENABLED=true`` in the
environment. Test reports are mapped onto the aggregator's lifecycle:

- test start -> mark_start
- passed call -> success
- failed call -> fail
- failed setup or teardown -> error
- skipped test or expected failure -> skipped
- rerun (pytest-rerunfailures) -> retry

The report is written once, when the session finishes.
"""

import asyncio
import logging
from typing import Any

import pytest

from resultcollector.config import load_settings
from resultcollector.core.aggregator import ResultAggregator
from resultcollector.core.models import ResultEvent
from resultcollector.core.ports import ToolAdapterPort
from resultcollector.main import create_aggregator

logger = logging.getLogger(__name__)

DEFAULT_SKIP_REASON = "No skip reason"
PLUGIN_NAME = "result_collector"


class PytestToolAdapter(ToolAdapterPort):
    """Tool adapter for events built from pytest ``TestReport`` objects."""

    def configure_test_result(self, event: ResultEvent) -> dict[str, Any]:
        return {key: value for key, value in event.items() if value is not None}

    def is_failed_test(self, event: ResultEvent) -> bool:
        """Failures in the test body are test failures; fixture failures are errors."""
        return event.get("when") == "call"

    def get_skip_reason(self, event: ResultEvent) -> str:
        return event.get("skipReason") or DEFAULT_SKIP_REASON


def _skip_reason(report: pytest.TestReport) -> str | None:
    if hasattr(report, "wasxfail"):
        return report.wasxfail or None
    longrepr = report.longrepr
    if isinstance(longrepr, tuple) and len(longrepr) == 3:
        reason = str(longrepr[2])
        return reason.removeprefix("Skipped: ") or None
    return None


def _crash_message(report: pytest.TestReport) -> str | None:
    reprcrash = getattr(report.longrepr, "reprcrash", None)
    return getattr(reprcrash, "message", None)


def event_from_report(report: pytest.TestReport, browser_id: str = "") -> dict[str, Any]:
    """Build a collector event from a pytest test report."""
    event: dict[str, Any] = {
        "fullName": report.nodeid,
        "browserId": browser_id or None,
        "file": report.location[0],
        "line": report.location[1],
        "when": report.when,
    }
    if report.failed or report.outcome == "rerun":
        event["message"] = _crash_message(report)
        event["stack"] = report.longreprtext or None
    if report.skipped:
        event["skipReason"] = _skip_reason(report)
    return event


class ResultCollectorPlugin:
    """Feeds pytest reports into a ResultAggregator."""

    def __init__(self, aggregator: ResultAggregator, browser_id: str = ""):
        self.aggregator = aggregator
        self.browser_id = browser_id

    def pytest_runtest_logstart(self, nodeid: str, location: tuple[str, int | None, str]) -> None:
        self.aggregator.mark_start({"fullName": nodeid, "browserId": self.browser_id or None})

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        event = event_from_report(report, self.browser_id)

        if report.outcome == "rerun":
            self.aggregator.add_retry(event)
        elif report.when == "call":
            if report.passed:
                self.aggregator.add_success(event)
            elif report.failed:
                self.aggregator.add_fail(event)
            else:
                self.aggregator.add_skipped(event)
        elif report.failed:
            self.aggregator.add_error(event)
        elif report.skipped:
            self.aggregator.add_skipped(event)

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        asyncio.run(self.aggregator.persist())


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("result-collector", "test result collector")
    group.addoption(
        "--result-report",
        action="store",
        dest="result_report_path",
        default=None,
        metavar="PATH",
        help="Write a JSON report of test results to PATH.",
    )
    group.addoption(
        "--result-browser-id",
        action="store",
        dest="result_browser_id",
        default=None,
        help="Second identity component appended to every test name.",
    )


def pytest_configure(config: pytest.Config) -> None:
    path = config.getoption("result_report_path")
    settings = load_settings(path=path, enabled=True) if path else load_settings()
    if not settings.enabled:
        return

    browser_id = config.getoption("result_browser_id") or settings.browser_id
    aggregator = create_aggregator(PytestToolAdapter(), settings)
    config.pluginmanager.register(ResultCollectorPlugin(aggregator, browser_id), PLUGIN_NAME)
    logger.debug(f"Result collector enabled, writing to {settings.path}")


def pytest_unconfigure(config: pytest.Config) -> None:
    plugin = config.pluginmanager.get_plugin(PLUGIN_NAME)
    if plugin is not None:
        config.pluginmanager.unregister(plugin, PLUGIN_NAME)
