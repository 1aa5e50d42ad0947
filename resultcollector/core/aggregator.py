"""Result aggregator: turns test lifecycle events into stored records.

Each ``add_*`` operation runs the raw event through the tool adapter,
stamps it with a status and duration, and upserts it into the record
store. ``persist`` writes the final snapshot once the run is over.
"""

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from .models import ResultEvent, ResultStatus, error_reason
from .ports import ReportStoragePort, ToolAdapterPort
from .record_store import RecordStore

logger = logging.getLogger(__name__)


class ReportConfig(Protocol):
    """Anything carrying the report destination."""

    path: str


class ResultAggregator:
    """Collects per-test outcomes for a single run and persists them.

    Calls are expected to arrive sequentially. Retries and repeated events
    for the same identity overwrite the earlier record.
    """

    def __init__(
        self,
        tool_adapter: ToolAdapterPort,
        config: ReportConfig,
        storage: ReportStoragePort,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the aggregator.

        Args:
            tool_adapter: ToolAdapterPort implementation for the test tool.
            config: Settings object; only ``path`` is read.
            storage: ReportStoragePort implementation used by ``persist``.
            clock: Returns the current time in seconds. Injected for tests.
        """
        self.tool_adapter = tool_adapter
        self.config = config
        self.storage = storage
        self.clock = clock
        self.store = RecordStore.create()

    @classmethod
    def create(
        cls,
        tool_adapter: ToolAdapterPort,
        config: ReportConfig,
        storage: ReportStoragePort,
        clock: Callable[[], float] = time.time,
    ) -> "ResultAggregator":
        """Build an aggregator with a fresh, empty record store."""
        return cls(tool_adapter, config, storage, clock=clock)

    def mark_start(self, event: ResultEvent) -> None:
        """Record the start time of a test. Does not create a record."""
        configured = self.tool_adapter.configure_test_result(event)
        self.store.save_start_time(configured, self.clock())

    def add_success(self, event: ResultEvent) -> None:
        self._add_test_result(event, {"status": ResultStatus.SUCCESS.value})

    def add_fail(self, event: ResultEvent) -> None:
        self._add_test_result(event, {"status": ResultStatus.FAIL.value})

    def add_skipped(self, event: ResultEvent) -> None:
        self._add_test_result(
            event,
            {
                "status": ResultStatus.SKIPPED.value,
                "skipReason": self.tool_adapter.get_skip_reason(event),
            },
        )

    def add_retry(self, event: ResultEvent) -> None:
        """Record a retried test as a failure or an error.

        The tool adapter decides: a retry caused by the test's own
        assertions is a failure, anything else is an error.
        """
        if self.tool_adapter.is_failed_test(event):
            self.add_fail(event)
        else:
            self.add_error(event)

    def add_error(self, event: ResultEvent) -> None:
        self._add_test_result(
            event,
            {
                "status": ResultStatus.ERROR.value,
                "errorReason": error_reason(event),
            },
        )

    def get_data(self) -> Mapping[str, dict[str, Any]]:
        """Return a read-only snapshot of the collected records."""
        return self.store.get_data()

    async def persist(self) -> bool:
        """Write the collected records to ``config.path``.

        Failures are logged and swallowed so a broken report write never
        fails the test run that produced it.

        Returns:
            True if the report was written, False if the write failed.
        """
        path = self.config.path
        data = self.store.get_data()
        try:
            await self.storage.write_json(path, dict(data))
        except Exception as e:
            logger.error(
                f"Failed to write test report to {path}: {e}",
                extra={"path": path, "records": len(data)},
                exc_info=True,
            )
            return False

        logger.info(
            f"Wrote {len(data)} test records to {path}",
            extra={"path": path, "records": len(data)},
        )
        return True

    def _add_test_result(self, event: ResultEvent, props: dict[str, Any]) -> None:
        configured = self.tool_adapter.configure_test_result(event)
        record = {**configured, **props, "duration": self._duration(configured)}
        identity = self.store.append(record)

        logger.debug(
            f"Recorded {props['status']} for {identity!r}",
            extra={"identity": identity, "status": props["status"]},
        )

    def _duration(self, event: Mapping[str, Any]) -> int:
        # Milliseconds since mark_start; 0 when the test was never started.
        start = self.store.pop_start_time(event)
        if start is None:
            return 0
        return max(0, round((self.clock() - start) * 1000))


__all__ = ["ReportConfig", "ResultAggregator"]
