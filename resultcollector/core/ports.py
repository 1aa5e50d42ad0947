"""Port interfaces for the result collector.

These abstract base classes define the boundaries between the core
aggregation logic and external adapters. Implementations live in the
adapters/ package.

Driven ports (core calls out to adapters):
    - ToolAdapterPort: tool-specific normalization and classification
    - ReportStoragePort: durable write of the final report
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .models import ResultEvent


class ToolAdapterPort(ABC):
    """Port for the test tool that produces result events.

    Each test runner has its own notion of what a failed test, a skip
    reason or a test name is. Adapters implementing this port translate
    those notions for the aggregator.

    Implementations must:
    - Keep the identity fields (``fullName``, ``browserId``) stable between
      ``configure_test_result`` calls for the same test
    - Not mutate the event they are given
    """

    @abstractmethod
    def configure_test_result(self, event: ResultEvent) -> dict[str, Any]:
        """Normalize or enrich a raw event before it is recorded.

        Args:
            event: Raw event as reported by the tool.

        Returns:
            A new mapping with the fields to store. May add tool-specific
            fields (file, url, meta, ...); must not drop identity fields.
        """

    @abstractmethod
    def is_failed_test(self, event: ResultEvent) -> bool:
        """Decide whether a retried test failed on its own assertions.

        Args:
            event: Raw event for the retried test.

        Returns:
            True if the retry should be recorded as a failure, False if it
            should be recorded as an error (tooling or infrastructure).
        """

    @abstractmethod
    def get_skip_reason(self, event: ResultEvent) -> str:
        """Extract a human-readable reason for a skipped test.

        Args:
            event: Raw event for the skipped test.

        Returns:
            Skip reason text. Empty string if the tool gives none.
        """


class ReportStoragePort(ABC):
    """Port for writing the aggregated report.

    Implementations must create missing parent directories and should
    replace the destination atomically so readers never see a partial
    report.
    """

    @abstractmethod
    async def write_json(self, path: str, data: Mapping[str, Any]) -> None:
        """Write ``data`` as JSON to ``path``.

        Args:
            path: Destination file path.
            data: JSON-compatible mapping to write.

        Raises:
            OSError: If the file cannot be written.
            Exception: Any other failure is propagated to the caller.
        """
